from .db import db
from .user import User
from .access_token import AccessToken
from .login_rate_limit import LoginRateLimit
from .personnel import Personnel
from .audit_log import AuditLog
