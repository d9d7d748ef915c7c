from .health import health_bp
from .auth import auth_bp
from .registration import registration_bp
