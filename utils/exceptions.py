"""Application exception hierarchy."""


class OpenBudgetError(Exception):
    """Base class for all application errors."""


class ValidationError(OpenBudgetError, ValueError):
    """Invalid user input (empty name, bad date, zero amount, ...)."""


class DuplicateUserError(OpenBudgetError):
    """A user or login with the same identity already exists."""


class DuplicateUsernameError(DuplicateUserError):
    pass


class DuplicateEmailError(DuplicateUserError):
    pass


class NotFoundError(OpenBudgetError):
    pass


class AuthenticationError(OpenBudgetError):
    pass


class BadPasswordError(AuthenticationError):
    pass


class PersistenceError(OpenBudgetError):
    """A database operation failed (create, write or update)."""


class DatabaseTimeoutError(PersistenceError):
    pass
