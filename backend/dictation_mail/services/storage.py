"""
Supabase Storage adapter for recordings and transcriptions.
Handles metadata probes, downloads, and signed download/upload URL generation.

The Supabase client is synchronous; async callers wrap these methods in
``asyncio.to_thread``.
"""

import logging
import posixpath
from dataclasses import dataclass
from typing import Optional, Protocol
from urllib.parse import urlparse, urlunparse

from supabase import Client

from dictation_mail.errors import AssetNotFound, StorageFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObjectHead:
    size_bytes: int
    content_type: Optional[str]


@dataclass(frozen=True)
class SignedUpload:
    url: str
    token: Optional[str]


class AssetStorage(Protocol):
    """The storage capabilities the delivery pipeline relies on."""

    def head(self, key: str) -> Optional[ObjectHead]: ...

    def get(self, key: str) -> bytes: ...

    def presign_get(self, key: str, ttl_seconds: int, filename: Optional[str] = None) -> str: ...


def _rewrite_signed_url_host(signed_url: str, public_url: Optional[str]) -> str:
    """
    Replace the host in a signed URL with the browser-accessible Supabase URL.

    When the backend runs inside Docker it reaches Supabase through an
    internal host like ``http://host.docker.internal:54321``, and Supabase
    embeds that host in every signed URL it generates. Those URLs end up in
    emails, so they must use the public-facing host instead.

    If ``public_url`` is empty the URL is returned unchanged, which is the
    correct behaviour for production deployments.
    """
    if not public_url:
        return signed_url

    parsed_signed = urlparse(signed_url)
    parsed_public = urlparse(public_url)

    # Swap scheme + netloc; keep path/query/fragment from the signed URL.
    return urlunparse((
        parsed_public.scheme,
        parsed_public.netloc,
        parsed_signed.path,
        parsed_signed.params,
        parsed_signed.query,
        parsed_signed.fragment,
    ))


def _is_not_found(exc: Exception) -> bool:
    """
    True when a storage error reports a missing object.

    storage3 raises StorageApiError with ``status``/``code`` attributes; older
    releases raise StorageException carrying the error payload dict.
    """
    status = getattr(exc, "status", None)
    code = getattr(exc, "code", None)
    if status is None and code is None and exc.args and isinstance(exc.args[0], dict):
        status = exc.args[0].get("statusCode")
        code = exc.args[0].get("error")
    return str(status) == "404" or str(code).lower() in ("not_found", "nosuchkey")


class SupabaseAssetStorage:
    """AssetStorage backed by one Supabase Storage bucket."""

    def __init__(self, client: Client, bucket: str, public_url: Optional[str] = None):
        self._client = client
        self.bucket = bucket
        self._public_url = public_url

    def _bucket(self):
        return self._client.storage.from_(self.bucket)

    def head(self, key: str) -> Optional[ObjectHead]:
        """
        Return size and content type for ``key``, or None if it does not exist.

        Supabase has no HEAD-style call on the storage client, so the parent
        folder is listed with a name search and the exact entry is picked out.
        Folder placeholders (no metadata) are treated as missing.
        """
        folder, name = posixpath.split(key)
        try:
            entries = self._bucket().list(folder, {"search": name, "limit": 100})
        except Exception as e:
            logger.error(f"Storage metadata probe failed for {key}: {e}")
            raise StorageFailure(f"Failed to read metadata for {key}")

        for entry in entries or []:
            if entry.get("name") != name:
                continue
            metadata = entry.get("metadata")
            if not metadata:
                return None
            size = metadata.get("size") or metadata.get("contentLength") or 0
            content_type = metadata.get("mimetype") or metadata.get("contentType")
            return ObjectHead(size_bytes=int(size), content_type=content_type or None)
        return None

    def get(self, key: str) -> bytes:
        """
        Download the full object.

        Raises:
            AssetNotFound: the object disappeared after the metadata probe
            StorageFailure: any other storage error
        """
        try:
            return self._bucket().download(key)
        except Exception as e:
            if _is_not_found(e):
                raise AssetNotFound(key)
            logger.error(f"Storage download failed for {key}: {e}")
            raise StorageFailure(f"Failed to download {key}")

    def presign_get(self, key: str, ttl_seconds: int, filename: Optional[str] = None) -> str:
        """
        Generate a signed download URL for ``key``.

        When ``filename`` is given the URL asks Supabase to serve the object
        with ``Content-Disposition: attachment; filename="<filename>"`` so
        browsers save the file instead of rendering it.
        """
        options = {"download": filename} if filename else None
        try:
            if options:
                result = self._bucket().create_signed_url(key, ttl_seconds, options)
            else:
                result = self._bucket().create_signed_url(key, ttl_seconds)
        except Exception as e:
            if _is_not_found(e):
                raise AssetNotFound(key)
            logger.error(f"Signed URL generation failed for {key}: {e}")
            raise StorageFailure(f"Failed to generate signed URL for {key}")

        signed = (result or {}).get("signedURL") or (result or {}).get("signedUrl")
        if not signed:
            raise StorageFailure(f"No signed URL returned from storage for {key}")

        return _rewrite_signed_url_host(signed, self._public_url)

    def presign_put(self, key: str) -> SignedUpload:
        """Generate a signed upload URL that lets the client PUT ``key`` directly."""
        try:
            result = self._bucket().create_signed_upload_url(key)
        except Exception as e:
            logger.error(f"Signed upload URL generation failed for {key}: {e}")
            raise StorageFailure(f"Failed to generate upload URL for {key}")

        result = result or {}
        signed = result.get("signed_url") or result.get("signedUrl") or result.get("signedURL")
        if not signed:
            raise StorageFailure(f"No signed upload URL returned from storage for {key}")

        return SignedUpload(
            url=_rewrite_signed_url_host(signed, self._public_url),
            token=result.get("token"),
        )

    def bucket_exists(self) -> bool:
        buckets = self._client.storage.list_buckets()
        return self.bucket in [b.name for b in buckets]
