from typing import Dict, List, Optional


class ApiError(Exception):
    """Base for every failure surfaced to API callers."""

    status_code = 500
    message = "Unexpected failure"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationFailed(ApiError):
    status_code = 422
    message = "Validation failed"

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    @property
    def failed_fields(self) -> List[str]:
        return sorted(self.errors)

    def to_dict(self) -> dict:
        return {"error": self.message, "errors": self.errors}


class ConflictDuplicate(ValidationFailed):
    """A unique value was claimed by a concurrent write."""

    def __init__(self, field: str):
        label = field.replace("_", " ")
        super().__init__({field: [f"The {label} has already been taken."]})
        self.field = field


class RateLimited(ApiError):
    status_code = 429
    message = "Too many login attempts. Please try again later."

    def __init__(self, retry_after: int):
        super().__init__()
        self.retry_after = retry_after

    def to_dict(self) -> dict:
        return {"error": self.message, "retry_after": self.retry_after}


class CredentialsInvalid(ApiError):
    # unknown user, inactive user and wrong password all look like this
    status_code = 401
    message = "The provided credentials do not match our records."


class AccountLocked(ApiError):
    status_code = 423
    message = "Account is temporarily locked. Please try again later."

    def __init__(self, retry_after: Optional[int] = None):
        super().__init__()
        self.retry_after = retry_after

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.retry_after:
            payload["retry_after"] = self.retry_after
        return payload


class Unauthenticated(ApiError):
    status_code = 401
    message = "Not authenticated."


class Forbidden(ApiError):
    status_code = 403
    message = "Account is inactive"


class NotFound(ApiError):
    status_code = 404
    message = "Registrant not found"


class Unexpected(ApiError):
    status_code = 500
