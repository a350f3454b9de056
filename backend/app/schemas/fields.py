"""
schemas/fields.py — Custom marshmallow fields shared by the request schemas.
"""

from __future__ import annotations

from marshmallow import ValidationError, fields

from backend.app.errors import ErrorCode
from backend.app.ids import normalize_object_id


class ObjectId(fields.Str):
    """
    A 24-hex-digit record id. Deserialises to the lower-case form.

    A malformed value fails with the INVALID_ID code so the error handler
    reports it as such.
    """

    def _deserialize(self, value, attr, data, **kwargs):
        raw = super()._deserialize(value, attr, data, **kwargs)
        normalized = normalize_object_id(raw)
        if normalized is None:
            raise ValidationError(ErrorCode.INVALID_ID)
        return normalized
