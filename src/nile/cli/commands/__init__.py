"""CLI command implementations."""

from .keygen import keygen_command
from .thumbprint import thumbprint_command

__all__ = ["keygen_command", "thumbprint_command"]
