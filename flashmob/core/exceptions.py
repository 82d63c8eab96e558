"""
Custom application exceptions
"""

from typing import Optional, Dict, Any


class FlashmobException(Exception):
    """Base exception for FlashMob application"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(FlashmobException):
    """Authentication related errors"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="AUTH_ERROR",
            status_code=401,
            details=details
        )


class AuthorizationError(FlashmobException):
    """Caller lacks the host or admin privilege for the operation"""

    def __init__(self, message: str = "Not authorized", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
            details=details
        )


class NotFoundError(FlashmobException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource}
        )


class ValidationError(FlashmobException):
    """Validation errors"""

    def __init__(self, message: str, field: Optional[str] = None, code: str = "VALIDATION_ERROR"):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            details=details
        )


class EmptyMessageError(ValidationError):
    """Chat message body is blank after trimming"""

    def __init__(self):
        super().__init__("Message cannot be empty", field="body", code="EMPTY_MESSAGE")


class MessageTooLongError(ValidationError):
    """Chat message body exceeds the length limit"""

    def __init__(self, max_length: int):
        super().__init__(
            f"Message cannot exceed {max_length} characters",
            field="body",
            code="MESSAGE_TOO_LONG"
        )


class InvalidStateError(FlashmobException):
    """Operation attempted against an entity not in the required state"""

    def __init__(self, message: str, code: str = "INVALID_STATE", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details=details
        )


class AlreadyProcessedError(InvalidStateError):
    """Join request already approved or rejected"""

    def __init__(self, request_id: str, current_status: str):
        super().__init__(
            message="Request already processed",
            code="ALREADY_PROCESSED",
            details={"request_id": request_id, "status": current_status}
        )


class ConflictError(FlashmobException):
    """Resource conflict errors"""

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details=details
        )


class SessionFullError(ConflictError):
    """Session has reached max participants"""

    def __init__(self, session_id: str, max_participants: int):
        super().__init__(
            message="Session is full",
            code="SESSION_FULL",
            details={"session_id": session_id, "max_participants": max_participants}
        )


class AlreadyMemberError(ConflictError):
    """User already participates in the session"""

    def __init__(self, session_id: str):
        super().__init__(
            message="Already joined this session",
            code="ALREADY_MEMBER",
            details={"session_id": session_id}
        )


class DuplicatePendingRequestError(ConflictError):
    """A pending join request already exists for this user and session"""

    def __init__(self, session_id: str):
        super().__init__(
            message="Join request already pending",
            code="DUPLICATE_PENDING_REQUEST",
            details={"session_id": session_id}
        )


class LockAcquisitionError(ConflictError):
    """Failed to acquire lock error"""

    def __init__(self, resource: str):
        super().__init__(
            message=f"Failed to acquire lock for resource: {resource}",
            code="LOCK_FAILED",
            details={"resource": resource}
        )


class NotParticipantError(FlashmobException):
    """Check-in or messaging by a non-member"""

    def __init__(self, session_id: str):
        super().__init__(
            message="Not a participant of this session",
            code="NOT_PARTICIPANT",
            status_code=403,
            details={"session_id": session_id}
        )


class CheckinWindowClosedError(FlashmobException):
    """Check-in attempted outside its time window"""

    def __init__(self, opens_at: Any, closes_at: Any):
        super().__init__(
            message="Check-in window is closed",
            code="CHECKIN_WINDOW_CLOSED",
            status_code=400,
            details={"opens_at": str(opens_at), "closes_at": str(closes_at)}
        )
