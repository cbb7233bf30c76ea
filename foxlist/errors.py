# PURPOSE: one exception family for the whole core.
# Stores raise these; the auth coordinator turns them into AuthResult values.


class FoxlistError(Exception):
    """Base class; `code` is a stable, machine-readable identifier."""

    code = "error"
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(FoxlistError):
    code = "validation"
    default_message = "Invalid input"


class DuplicateEmailError(FoxlistError):
    code = "duplicate_email"
    default_message = "Email already registered"


class EmailInUseError(FoxlistError):
    code = "email_in_use"
    default_message = "Email already in use"


class InvalidCredentialsError(FoxlistError):
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class UserNotFoundError(FoxlistError):
    code = "not_found"
    default_message = "User not found"


class NotAuthenticatedError(FoxlistError):
    code = "not_authenticated"
    default_message = "No user is signed in"


class StorageError(FoxlistError):
    """Any underlying read/write/parse failure of a backing store."""

    code = "storage"
    default_message = "Storage failure"


class MalformedDeadlineError(FoxlistError):
    """Raised while parsing a deadline; never escapes classify_deadline()."""

    code = "malformed_deadline"
    default_message = "Invalid date"
