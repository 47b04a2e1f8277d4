"""
Meridian

A uniform issue-tracker domain with interchangeable in-memory and GitHub
backends, exposed over REST, MCP and a command line.
"""

import importlib.metadata

try:
    __version__ = importlib.metadata.version("meridian-tracker")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"

from .core.enums import Priority, SortDirection, Status
from .core.errors import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    UnknownLinkTypeError,
    ValidationError,
)

__all__ = [
    "AuthorizationError",
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "Priority",
    "SortDirection",
    "Status",
    "UnknownLinkTypeError",
    "ValidationError",
]
