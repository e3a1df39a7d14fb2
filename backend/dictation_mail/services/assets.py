"""
Asset metadata resolution.

Each AssetRef is probed against storage for its size and content type. All
probes for a request run concurrently; the first failure aborts the batch.
"""

import asyncio
import logging
import posixpath
from typing import Iterable, List

from dictation_mail.errors import AssetNotFound
from dictation_mail.models.delivery import AssetMeta, AssetRef
from dictation_mail.services.storage import AssetStorage

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_CONTENT_TYPES_BY_EXTENSION = {
    ".m4a": "audio/mp4",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".txt": "text/plain;charset=UTF-8",
    ".json": "application/json",
}


def infer_content_type(key: str) -> str:
    """Guess a content type from the key's extension (closed mapping)."""
    _, ext = posixpath.splitext(key.lower())
    return _CONTENT_TYPES_BY_EXTENSION.get(ext, DEFAULT_CONTENT_TYPE)


async def resolve_asset(storage: AssetStorage, ref: AssetRef) -> AssetMeta:
    """
    Probe storage for one asset.

    Raises:
        AssetNotFound: the object does not exist
    """
    head = await asyncio.to_thread(storage.head, ref.key)
    if head is None:
        logger.warning(f"Asset not found in storage: {ref.key}")
        raise AssetNotFound(ref.key)

    content_type = head.content_type or infer_content_type(ref.key)
    return AssetMeta(
        key=ref.key,
        label=ref.label,
        size_bytes=head.size_bytes,
        content_type=content_type,
    )


async def resolve_assets(storage: AssetStorage, refs: Iterable[AssetRef]) -> List[AssetMeta]:
    """Resolve every ref concurrently, preserving input order."""
    return list(await asyncio.gather(*(resolve_asset(storage, ref) for ref in refs)))
