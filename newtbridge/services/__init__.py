"""Service layer for the newtmgr protocol engine."""

from .manager import NewtManager, verify_response_code
from .upload import UploadSession, build_chunk_fields, chunk_length

__all__ = [
    "NewtManager",
    "UploadSession",
    "build_chunk_fields",
    "chunk_length",
    "verify_response_code",
]
