"""Error taxonomy for the registration pipeline.

Each error carries a stable ``code`` and the HTTP status routers answer with,
so field-level problems (``FormValidationError``) stay distinguishable from
event-level ones (``BusinessRuleViolation``).
"""

from typing import Dict, Optional


class RegistrationError(Exception):
    """Base class for errors raised by the registration services"""

    code = "SERVER_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class NotFoundError(RegistrationError):
    code = "NOT_FOUND"
    status_code = 404


class BusinessRuleViolation(RegistrationError):
    """Event-level rule rejected the submission"""

    code = "REGISTRATION_CLOSED"
    status_code = 403


class RegistrationNotOpenError(BusinessRuleViolation):
    def __init__(self, message: str = "Event is not open for registration"):
        super().__init__(message)


class DeadlinePassedError(BusinessRuleViolation):
    def __init__(self, message: str = "Registration deadline has passed"):
        super().__init__(message)


class CapacityReachedError(BusinessRuleViolation):
    def __init__(self, message: str = "Event has reached maximum capacity"):
        super().__init__(message)


class AlreadyRegisteredError(BusinessRuleViolation):
    def __init__(self, message: str = "You have already registered for this event"):
        super().__init__(message)


class EmailRequiredError(BusinessRuleViolation):
    code = "EMAIL_REQUIRED"
    status_code = 400

    def __init__(self, message: str = "Email is required"):
        super().__init__(message)


class FormValidationError(RegistrationError):
    """Submitted values failed the form schema; ``errors`` maps field id to message"""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self,
        errors: Dict[str, str],
        message: str = "Please check your form inputs",
    ):
        super().__init__(message)
        self.errors = dict(errors)

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["details"] = self.errors
        return detail


class PersistenceConflictError(RegistrationError):
    """A unique constraint kept failing for a reason other than a duplicate email"""

    code = "CONFLICT"
    status_code = 409


class SyncFailure(RegistrationError):
    """Writing a registration to the external sheet failed"""

    code = "SYNC_FAILED"
    status_code = 502

    def __init__(self, message: str, event_id: Optional[str] = None):
        super().__init__(message)
        self.event_id = event_id
