# Core package initialization
# Configuration, errors, validation and the cross-cutting web helpers

from . import exceptions, security, validation

__all__ = [
    "exceptions",
    "security",
    "validation",
]
