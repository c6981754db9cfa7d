"""Data model for newtbridge configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..protocol import protocol
from .const import (
    DEFAULT_DEBUG_LOGGING,
    DEFAULT_RESPONSE_TIMEOUT,
    DEFAULT_RETRY_ATTEMPTS,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ManagerConfig:
    """Strongly typed configuration for the protocol engine and client."""

    upload_chunk_size: int = protocol.UPLOAD_CHUNK_SIZE
    upload_first_chunk_reserve: int = protocol.UPLOAD_FIRST_CHUNK_RESERVE
    upload_min_image_size: int = protocol.UPLOAD_MIN_IMAGE_SIZE
    response_timeout: float = DEFAULT_RESPONSE_TIMEOUT
    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    debug_logging: bool = DEFAULT_DEBUG_LOGGING

    def __post_init__(self) -> None:
        self.upload_chunk_size = self._require_positive("upload_chunk_size", int(self.upload_chunk_size))
        if self.upload_chunk_size > protocol.UINT16_MAX:
            raise ValueError(f"upload_chunk_size must not exceed {protocol.UINT16_MAX}")
        if not 0 <= self.upload_first_chunk_reserve < self.upload_chunk_size:
            raise ValueError("upload_first_chunk_reserve must be in [0, upload_chunk_size)")
        self.upload_min_image_size = self._require_positive("upload_min_image_size", int(self.upload_min_image_size))
        self.retry_attempts = self._require_positive("retry_attempts", int(self.retry_attempts))
        if self.response_timeout <= 0.0:
            raise ValueError("response_timeout must be a positive number")
        if self.upload_chunk_size != protocol.UPLOAD_CHUNK_SIZE:
            logger.info(
                "Upload chunk size overridden to %d bytes (device default is %d)",
                self.upload_chunk_size,
                protocol.UPLOAD_CHUNK_SIZE,
            )

    @staticmethod
    def _require_positive(name: str, value: int) -> int:
        if value <= 0:
            raise ValueError(f"{name} must be a positive integer")
        return value
