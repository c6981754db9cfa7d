"""Marshmallow schema for ManagerConfig validation."""

from __future__ import annotations

from typing import Any, Dict

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate, validates_schema

from ..protocol import protocol
from .const import DEFAULT_DEBUG_LOGGING, DEFAULT_RESPONSE_TIMEOUT, DEFAULT_RETRY_ATTEMPTS
from .model import ManagerConfig


class ManagerConfigSchema(Schema):
    """Declarative validation schema for newtbridge configuration."""

    class Meta:
        unknown = EXCLUDE

    # Upload
    upload_chunk_size = fields.Int(
        load_default=protocol.UPLOAD_CHUNK_SIZE,
        validate=validate.Range(min=1, max=protocol.UINT16_MAX),
    )
    upload_first_chunk_reserve = fields.Int(
        load_default=protocol.UPLOAD_FIRST_CHUNK_RESERVE,
        validate=validate.Range(min=0),
    )
    upload_min_image_size = fields.Int(
        load_default=protocol.UPLOAD_MIN_IMAGE_SIZE,
        validate=validate.Range(min=1),
    )

    # Client
    response_timeout = fields.Float(load_default=DEFAULT_RESPONSE_TIMEOUT, validate=validate.Range(min=0.01))
    retry_attempts = fields.Int(load_default=DEFAULT_RETRY_ATTEMPTS, validate=validate.Range(min=1))

    # System
    debug_logging = fields.Bool(load_default=DEFAULT_DEBUG_LOGGING)

    @validates_schema
    def validate_chunk_budget(self, data: Dict[str, Any], **kwargs: Any) -> None:
        if data["upload_first_chunk_reserve"] >= data["upload_chunk_size"]:
            raise ValidationError(
                "upload_first_chunk_reserve must be smaller than upload_chunk_size",
                field_name="upload_first_chunk_reserve",
            )

    @post_load
    def make_config(self, data: Dict[str, Any], **kwargs: Any) -> ManagerConfig:
        return ManagerConfig(**data)
