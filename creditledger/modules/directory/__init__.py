"""Account directory exports"""

from .exceptions import AccountDirectoryError, InvalidAccountError
from .models import AccountProfile
from .service import AccountDirectory, StaticAccountDirectory

__all__ = [
    "AccountDirectoryError",
    "InvalidAccountError",
    "AccountProfile",
    "AccountDirectory",
    "StaticAccountDirectory",
]
