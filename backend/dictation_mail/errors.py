"""
Delivery error taxonomy.

Every error surfaced to a caller carries a stable ``code`` and a
human-readable ``message``. They are HTTPException subclasses so routers and
services can raise them directly; FastAPI renders them as

    {"detail": {"code": "<code>", "message": "<message>"}}
"""

from fastapi import HTTPException


class DeliveryError(HTTPException):
    """Base class for all terminal request errors."""

    code = "InternalError"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(
            status_code=type(self).status_code,
            detail={"code": self.code, "message": message},
        )


class Unauthorized(DeliveryError):
    code = "Unauthorized"
    status_code = 401


class MalformedRequest(DeliveryError):
    code = "MalformedRequest"
    status_code = 400


class InvalidKey(DeliveryError):
    code = "InvalidKey"
    status_code = 400


class Forbidden(DeliveryError):
    code = "Forbidden"
    status_code = 403


class UnsupportedContentType(DeliveryError):
    code = "UnsupportedContentType"
    status_code = 400


class AssetNotFound(DeliveryError):
    code = "AssetNotFound"
    status_code = 404

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Object not found: {key}")


class StorageFailure(DeliveryError):
    code = "StorageFailure"
    status_code = 502


class DispatchFailure(DeliveryError):
    code = "DispatchFailure"
    status_code = 500
