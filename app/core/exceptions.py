"""Domain errors raised by services and rendered by the API's exception handler."""


class WardenError(Exception):
    """
    Base class for expected domain failures.

    status_code is the HTTP status the API answers with; message_key is the
    i18n catalog key for the user-facing message. params fill placeholders in
    the translated message.
    """

    status_code = 500
    message_key = "errors.internal_server_error"

    def __init__(self, message: str | None = None, **params: str) -> None:
        self.message = message or self.message_key
        self.params = params
        super().__init__(self.message)


class InvalidCredentialsError(WardenError):
    """Unknown email, account without password, or wrong password. Deliberately indistinguishable."""

    status_code = 401
    message_key = "errors.invalid_credentials"


class InvalidTokenError(WardenError):
    """Session token with a bad signature, malformed structure, or elapsed expiry."""

    status_code = 401
    message_key = "errors.invalid_or_expired_token"


class InvalidResetTokenError(InvalidTokenError):
    """Password reset token that is unknown, already consumed, or expired."""

    status_code = 400
    message_key = "auth.password_reset.invalid_token"


class NotAuthenticatedError(WardenError):
    status_code = 401
    message_key = "errors.not_authenticated"


class AccessDeniedError(WardenError):
    """Authenticated principal lacks the required permission(s)."""

    status_code = 403
    message_key = "permissions.insufficient_permissions"


class RoleNotFoundError(WardenError):
    status_code = 404
    message_key = "errors.role_not_found"


class PermissionNotFoundError(WardenError):
    status_code = 404
    message_key = "errors.permission_not_found"


class DuplicateEmailError(WardenError):
    status_code = 409
    message_key = "errors.email_already_registered"


class UserNotFoundError(WardenError):
    status_code = 404
    message_key = "errors.user_not_found"


class UndeletableAccountError(WardenError):
    """The seed admin account cannot be deleted."""

    status_code = 403
    message_key = "errors.cannot_delete_admin"


class InvalidPreferencesError(WardenError):
    status_code = 422
    message_key = "errors.invalid_preferences"


class StorageError(WardenError):
    """Persistence-layer fault surfaced without leaking driver details."""

    status_code = 500
    message_key = "errors.database_error"
