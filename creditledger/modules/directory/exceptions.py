"""Account directory specific exceptions."""


class AccountDirectoryError(Exception):
    """Base class for account directory errors."""


class InvalidAccountError(AccountDirectoryError):
    """Raised when an account id is malformed or unknown to the directory."""
