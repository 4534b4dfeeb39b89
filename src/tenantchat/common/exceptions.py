"""tenantchat exception hierarchy.

Every error carries a stable ``code`` and the HTTP status the API boundary
renders it with. Services raise these; only the app-level handler turns them
into responses.
"""


class TenantChatError(Exception):
    """Base exception for all tenantchat errors."""

    status_code = 500

    def __init__(self, message: str = "", code: str = "SERVER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


# ── Validation ──


class InvalidInputError(TenantChatError):
    """Raised for malformed references or request fields."""

    status_code = 400

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, code="INVALID_INPUT")


class InvalidPhoneFormatError(InvalidInputError):
    """Raised when a phone number does not normalize to the expected digits."""

    def __init__(self, message: str = "Invalid phone number"):
        super().__init__(message)


class InvalidCursorError(InvalidInputError):
    """Raised when a pagination cursor cannot be decoded."""

    def __init__(self, message: str = "Invalid pagination cursor"):
        super().__init__(message)


# ── Not found ──


class NotFoundError(TenantChatError):
    status_code = 404

    def __init__(self, message: str = "Resource not found", code: str = "NOT_FOUND"):
        super().__init__(message, code=code)


class TenantNotFoundError(NotFoundError):
    def __init__(self, message: str = "Tenant not found"):
        super().__init__(message, code="TENANT_NOT_FOUND")


class AccountNotFoundError(NotFoundError):
    def __init__(self, message: str = "Account not found"):
        super().__init__(message, code="ACCOUNT_NOT_FOUND")


class MessageNotFoundError(NotFoundError):
    def __init__(self, message: str = "Message not found"):
        super().__init__(message, code="MESSAGE_NOT_FOUND")


class NotBlockedError(NotFoundError):
    """Raised when unblocking a pair that has no active block entry."""

    def __init__(self, message: str = "No active block found for this user"):
        super().__init__(message, code="NOT_BLOCKED")


# ── Authorization ──


class ForbiddenError(TenantChatError):
    status_code = 403

    def __init__(self, message: str = "Access forbidden"):
        super().__init__(message, code="FORBIDDEN")


class SenderBlockedError(TenantChatError):
    """Raised when a blocked external identity tries to send."""

    status_code = 403

    def __init__(self, message: str = "Sender is blocked for this tenant"):
        super().__init__(message, code="SENDER_BLOCKED")


# ── Conflicts ──


class ConflictError(TenantChatError):
    status_code = 409

    def __init__(self, message: str = "Conflict", code: str = "CONFLICT"):
        super().__init__(message, code=code)


class DuplicateNameError(ConflictError):
    def __init__(self, message: str = "A tenant with this name already exists"):
        super().__init__(message, code="DUPLICATE_NAME")


class DuplicateAccountError(ConflictError):
    def __init__(self, message: str = "An account with this phone number already exists"):
        super().__init__(message, code="DUPLICATE_ACCOUNT")


class AlreadyAdminError(ConflictError):
    def __init__(self, message: str = "Account is already an admin of this tenant"):
        super().__init__(message, code="ALREADY_ADMIN")


class AlreadyBlockedError(ConflictError):
    def __init__(self, message: str = "User is already blocked for this tenant"):
        super().__init__(message, code="ALREADY_BLOCKED")


# ── Internal ──


class DataIntegrityError(TenantChatError):
    """Stored data violates an invariant; surfaced as a generic server error."""

    status_code = 500

    def __init__(self, message: str = "Data integrity violation"):
        super().__init__(message, code="SERVER_ERROR")
