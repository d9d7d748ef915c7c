from models.db import db
from utils import clock

class AccessToken(db.Model):
    __tablename__ = "access_tokens"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False, default="api_token")

    # store only hashed token in DB (never store raw token)
    token_hash = db.Column(db.String(64), unique=True, nullable=False, index=True)
    abilities = db.Column(db.JSON, nullable=False, default=lambda: ["*"])

    created_at = db.Column(db.DateTime, default=clock.utcnow, nullable=False)
    last_used_at = db.Column(db.DateTime, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=False)

    revoked = db.Column(db.Boolean, default=False, nullable=False)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    user = db.relationship("User", back_populates="tokens")

    def can(self, ability: str) -> bool:
        return "*" in (self.abilities or []) or ability in (self.abilities or [])
