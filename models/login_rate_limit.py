from models.db import db
from utils import clock

class LoginRateLimit(db.Model):
    __tablename__ = "login_rate_limits"

    id = db.Column(db.Integer, primary_key=True)

    # e.g. "login_attempts:203.0.113.7"
    key = db.Column(db.String(128), unique=True, nullable=False, index=True)

    attempts = db.Column(db.Integer, default=0, nullable=False)
    # window opens on the first hit and decays at expires_at
    expires_at = db.Column(db.DateTime, nullable=False)

    updated_at = db.Column(db.DateTime, default=clock.utcnow, onupdate=clock.utcnow, nullable=False)
