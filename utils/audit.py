import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_event(action: str, ctx=None, user_id=None, entity=None, entity_id=None, metadata=None,
              level=logging.INFO):
    """
    Append an audit row and mirror it to the application log.

    Call after the primary operation has committed. Failures here are logged
    and swallowed so auditing never breaks the caller's request.
    """
    if user_id is None and ctx is not None:
        user_id = ctx.actor_id
    ip = ctx.ip if ctx is not None else None
    user_agent = ctx.user_agent if ctx is not None else ""

    logger.log(level, "%s user_id=%s entity=%s entity_id=%s ip=%s metadata=%s",
               action, user_id, entity, entity_id, ip, metadata)

    try:
        row = AuditLog(
            user_id=user_id,
            action=action,
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            ip=ip,
            user_agent=user_agent[:255] if user_agent else None,
            metadata_json=json.dumps(metadata, default=str) if metadata else None
        )
        db.session.add(row)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to persist audit event %s", action)
