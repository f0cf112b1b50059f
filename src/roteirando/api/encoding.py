"""JSON encoding for console responses."""

from fastapi.encoders import jsonable_encoder

# Stored credentials never leave the server.
_SECRET_KEYS = {"leader_password", "password"}


def encode(value: object) -> object:
    """Encode dataclasses, dates and enums for a JSON response."""
    return _strip_secrets(jsonable_encoder(value))


def _strip_secrets(value: object) -> object:
    if isinstance(value, dict):
        return {
            key: _strip_secrets(item)
            for key, item in value.items()
            if key not in _SECRET_KEYS
        }
    if isinstance(value, list):
        return [_strip_secrets(item) for item in value]
    return value
