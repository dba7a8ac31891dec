"""
Domain errors for staff authentication and account management.

Every error carries a stable ``code`` (rendered in the API error envelope),
the HTTP ``status_code`` it maps to and optional structured ``details``.
Use cases hand these back inside ``Err`` results; value objects raise them
directly from their factories.
"""

from __future__ import annotations

from typing import Any, Optional


class StaffDomainError(Exception):
    """Base class for all staff domain errors."""

    code: str = "STAFF_DOMAIN_ERROR"
    status_code: int = 422
    default_message: str = "The request could not be processed"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Any] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details = details


# ── Input construction ─────────────────────────────────────────────
class InvalidEmail(StaffDomainError):
    code = "INVALID_EMAIL"
    default_message = "The email address is not valid"

    EMPTY = "empty"
    TOO_LONG = "too_long"
    BAD_FORMAT = "bad_format"

    def __init__(self, kind: str, message: Optional[str] = None):
        super().__init__(message, details=[{"field": "email", "reason": kind}])
        self.kind = kind

    @classmethod
    def empty(cls) -> "InvalidEmail":
        return cls(cls.EMPTY, "Email address is required")

    @classmethod
    def too_long(cls, max_length: int) -> "InvalidEmail":
        return cls(cls.TOO_LONG, f"Email address must be at most {max_length} characters")

    @classmethod
    def bad_format(cls) -> "InvalidEmail":
        return cls(cls.BAD_FORMAT, "Email address format is invalid")


class InvalidPassword(StaffDomainError):
    code = "INVALID_PASSWORD"
    default_message = "The password is not valid"

    EMPTY = "empty"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"

    def __init__(self, kind: str, message: Optional[str] = None):
        super().__init__(message, details=[{"field": "password", "reason": kind}])
        self.kind = kind

    @classmethod
    def empty(cls) -> "InvalidPassword":
        return cls(cls.EMPTY, "Password is required")

    @classmethod
    def too_short(cls, min_length: int) -> "InvalidPassword":
        return cls(cls.TOO_SHORT, f"Password must be at least {min_length} characters")

    @classmethod
    def too_long(cls, max_length: int) -> "InvalidPassword":
        return cls(cls.TOO_LONG, f"Password must be at most {max_length} characters")


class InvalidStaffName(StaffDomainError):
    code = "INVALID_STAFF_NAME"
    default_message = "The staff name is not valid"

    EMPTY = "empty"
    TOO_LONG = "too_long"

    def __init__(self, kind: str, message: Optional[str] = None):
        super().__init__(message, details=[{"field": "name", "reason": kind}])
        self.kind = kind

    @classmethod
    def empty(cls) -> "InvalidStaffName":
        return cls(cls.EMPTY, "Staff name is required")

    @classmethod
    def too_long(cls, max_length: int) -> "InvalidStaffName":
        return cls(cls.TOO_LONG, f"Staff name must be at most {max_length} characters")


# ── Authentication ─────────────────────────────────────────────────
class AuthenticationFailed(StaffDomainError):
    """Unknown email or wrong password. Deliberately indistinguishable."""

    code = "AUTH_INVALID_CREDENTIALS"
    status_code = 401
    default_message = "The email address or password is incorrect"


class AccountLocked(StaffDomainError):
    code = "AUTH_ACCOUNT_LOCKED"
    status_code = 423
    default_message = "This account is locked"

    def __init__(self, retry_after_seconds: int):
        super().__init__(details={"retry_after": retry_after_seconds})
        self.retry_after_seconds = retry_after_seconds


class SessionExpired(StaffDomainError):
    code = "AUTH_UNAUTHENTICATED"
    status_code = 401
    default_message = "Your session has ended. Please log in again"


class PermissionDenied(StaffDomainError):
    code = "AUTHZ_PERMISSION_DENIED"
    status_code = 403
    default_message = "You do not have permission to perform this action"


# ── Lookup ─────────────────────────────────────────────────────────
class StaffNotFound(StaffDomainError):
    code = "STAFF_NOT_FOUND"
    status_code = 404
    default_message = "The requested staff member was not found"

    def __init__(self, staff_id: str):
        super().__init__()
        self.staff_id = staff_id


class SessionNotFound(StaffDomainError):
    code = "SESSION_NOT_FOUND"
    status_code = 404
    default_message = "The session was not found"


class CannotTerminateCurrentSession(StaffDomainError):
    code = "BUSINESS_RULE_VIOLATION"
    status_code = 400
    default_message = "The current session cannot be terminated here. Use logout instead"


# ── Account mutation ───────────────────────────────────────────────
class DuplicateEmail(StaffDomainError):
    code = "DUPLICATE_EMAIL"
    default_message = "This email address is already in use"

    def __init__(self, email: str):
        super().__init__(details=[{"field": "email", "reason": "duplicate"}])
        self.email = email


class OptimisticLockConflict(StaffDomainError):
    code = "OPTIMISTIC_LOCK_CONFLICT"
    status_code = 409
    default_message = "This record was updated by someone else. Reload it and try again"


class SelfRoleChangeForbidden(StaffDomainError):
    code = "SELF_ROLE_CHANGE"
    default_message = "You cannot change your own role"


class LastAdminProtected(StaffDomainError):
    code = "LAST_ADMIN_PROTECTION"
    default_message = "The role of the last administrator cannot be changed"


# ── Password change ────────────────────────────────────────────────
class CurrentPasswordIncorrect(StaffDomainError):
    code = "CURRENT_PASSWORD_INCORRECT"
    default_message = "The current password is incorrect"


class PasswordConfirmationMismatch(StaffDomainError):
    code = "PASSWORD_CONFIRMATION_MISMATCH"
    default_message = "The new password and its confirmation do not match"


class PasswordPolicyViolation(StaffDomainError):
    code = "PASSWORD_POLICY_VIOLATION"
    default_message = "The new password does not meet the password policy"

    def __init__(self, violations: list[str]):
        super().__init__(
            details=[{"field": "new_password", "reason": v} for v in violations]
        )
        self.violations = violations


class PasswordReused(StaffDomainError):
    code = "PASSWORD_REUSED"
    default_message = "This password was used recently. Choose a different one"


class PasswordCompromised(StaffDomainError):
    code = "PASSWORD_COMPROMISED"
    default_message = "This password has appeared in a known data breach"
