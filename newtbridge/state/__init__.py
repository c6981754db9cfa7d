"""Request queue state."""

from .queue import CommandQueue

__all__ = ["CommandQueue"]
