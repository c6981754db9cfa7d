"""Transport boundary helpers."""

from .base import AsyncWrite, AsyncWriteTransport, NewtTransport, WriteCompletion

__all__ = ["AsyncWrite", "AsyncWriteTransport", "NewtTransport", "WriteCompletion"]
