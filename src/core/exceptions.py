"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Validation errors (400)
    MALFORMED_ENTITY = "MALFORMED_ENTITY"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ROLE = "INVALID_ROLE"

    # Not found errors (404)
    NOT_FOUND = "NOT_FOUND"
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    ORG_NOT_FOUND = "ORG_NOT_FOUND"
    MEMBERSHIP_NOT_FOUND = "MEMBERSHIP_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ROLE_NOT_FOUND = "ROLE_NOT_FOUND"
    INVITE_NOT_FOUND = "INVITE_NOT_FOUND"
    PLATFORM_INVITE_NOT_FOUND = "PLATFORM_INVITE_NOT_FOUND"

    # Conflict errors (409)
    CONFLICT = "CONFLICT"
    MEMBERSHIP_EXISTS = "MEMBERSHIP_EXISTS"
    DUPLICATE_INVITE = "DUPLICATE_INVITE"
    INVITE_EXPIRED = "INVITE_EXPIRED"
    INVALID_INVITE_STATE = "INVALID_INVITE_STATE"
    USER_ALREADY_REGISTERED = "USER_ALREADY_REGISTERED"
    ORG_NOT_EMPTY = "ORG_NOT_EMPTY"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Upstream errors (503)
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


# --- Taxonomy ---


class MalformedEntityError(AppException):
    """Invalid identifier format or entity shape."""

    def __init__(
        self,
        message: str = "Malformed entity",
        error_code: ErrorCode = ErrorCode.MALFORMED_ENTITY,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
            details=details,
        )


class NotFoundError(AppException):
    """Entity absent for the given scope."""

    def __init__(
        self,
        message: str = "Entity not found",
        error_code: ErrorCode = ErrorCode.NOT_FOUND,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=404,
            details=details,
        )


class ConflictError(AppException):
    """Uniqueness or state violation."""

    def __init__(
        self,
        message: str = "Entity already exists",
        error_code: ErrorCode = ErrorCode.CONFLICT,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=409,
            details=details,
        )


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(
        self,
        message: str = "Access denied",
        error_code: ErrorCode = ErrorCode.FORBIDDEN,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=403,
            details=details,
        )


class OrgNotEmptyError(AppException):
    """Org deletion blocked by remaining memberships."""

    def __init__(self, org_id: str, member_count: int) -> None:
        super().__init__(
            error_code=ErrorCode.ORG_NOT_EMPTY,
            message=f"Org still has members: {org_id}",
            status_code=409,
            details={"org_id": org_id, "member_count": member_count},
        )


class ServiceUnavailableError(AppException):
    """A service this one depends on failed or could not be reached."""

    def __init__(self, service: str, reason: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.SERVICE_UNAVAILABLE,
            message=f"{service} service is unavailable",
            status_code=503,
            details={"service": service, "reason": reason},
        )


# --- Specific errors ---


class InvalidRoleError(MalformedEntityError):
    """Role is not one of the allowed values."""

    def __init__(self, role: str) -> None:
        super().__init__(
            message=f"Invalid role: {role}",
            error_code=ErrorCode.INVALID_ROLE,
            details={"role": role},
        )


class InsufficientPermissionsError(AuthorizationError):
    """User does not have sufficient permissions."""

    def __init__(self, required_role: str = "admin") -> None:
        super().__init__(
            message=f"Insufficient permissions. Required role: {required_role}",
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            details={"required_role": required_role},
        )


class KeyNotFoundError(NotFoundError):
    """Key not found in the caller's issuer scope."""

    def __init__(self, key_id: str) -> None:
        super().__init__(
            message=f"Key not found: {key_id}",
            error_code=ErrorCode.KEY_NOT_FOUND,
            details={"key_id": key_id},
        )


class OrgNotFoundError(NotFoundError):
    """Org not found."""

    def __init__(self, org_id: str) -> None:
        super().__init__(
            message=f"Org not found: {org_id}",
            error_code=ErrorCode.ORG_NOT_FOUND,
            details={"org_id": org_id},
        )


class MembershipNotFoundError(NotFoundError):
    """No membership for the (org, member) pair."""

    def __init__(self, org_id: str, member_id: str) -> None:
        super().__init__(
            message="Membership not found",
            error_code=ErrorCode.MEMBERSHIP_NOT_FOUND,
            details={"org_id": org_id, "member_id": member_id},
        )


class UserNotFoundError(NotFoundError):
    """User unknown to the user directory."""

    def __init__(self, identifier: str) -> None:
        super().__init__(
            message=f"User not found: {identifier}",
            error_code=ErrorCode.USER_NOT_FOUND,
            details={"user": identifier},
        )


class RoleNotFoundError(NotFoundError):
    """No platform role assigned to the user."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            message=f"Role not found for user: {user_id}",
            error_code=ErrorCode.ROLE_NOT_FOUND,
            details={"user_id": user_id},
        )


class InviteNotFoundError(NotFoundError):
    """Org invite not found."""

    def __init__(self, invite_id: str) -> None:
        super().__init__(
            message=f"Invite not found: {invite_id}",
            error_code=ErrorCode.INVITE_NOT_FOUND,
            details={"invite_id": invite_id},
        )


class PlatformInviteNotFoundError(NotFoundError):
    """Platform invite not found."""

    def __init__(self, invite_id: str) -> None:
        super().__init__(
            message=f"Platform invite not found: {invite_id}",
            error_code=ErrorCode.PLATFORM_INVITE_NOT_FOUND,
            details={"invite_id": invite_id},
        )


class MembershipExistsError(ConflictError):
    """Member already belongs to the org."""

    def __init__(self, org_id: str, member_id: str = "") -> None:
        details = {"org_id": org_id}
        if member_id:
            details["member_id"] = member_id
        super().__init__(
            message="Membership already exists",
            error_code=ErrorCode.MEMBERSHIP_EXISTS,
            details=details,
        )


class DuplicateInviteError(ConflictError):
    """A pending invite already holds the uniqueness slot."""

    def __init__(self, message: str = "A pending invite already exists") -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.DUPLICATE_INVITE,
        )


class InviteExpiredError(ConflictError):
    """Invite has expired."""

    def __init__(self) -> None:
        super().__init__(
            message="This invite has expired",
            error_code=ErrorCode.INVITE_EXPIRED,
        )


class InvalidInviteStateError(ConflictError):
    """Invite is no longer pending."""

    def __init__(self, state: str) -> None:
        super().__init__(
            message=f"Invite is not pending: {state}",
            error_code=ErrorCode.INVALID_INVITE_STATE,
            details={"state": state},
        )


class UserAlreadyRegisteredError(ConflictError):
    """Email already belongs to a registered user."""

    def __init__(self, email: str) -> None:
        super().__init__(
            message="User with this email is already registered",
            error_code=ErrorCode.USER_ALREADY_REGISTERED,
            details={"email": email},
        )
