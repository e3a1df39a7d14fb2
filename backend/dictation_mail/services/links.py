"""
Signed download link issuance for link delivery.
"""

import asyncio
import logging
from typing import Iterable, List

from dictation_mail.models.delivery import AssetMeta, DownloadLink
from dictation_mail.services.keys import filename_for_key
from dictation_mail.services.storage import AssetStorage

logger = logging.getLogger(__name__)


async def issue_link(storage: AssetStorage, asset: AssetMeta, ttl_seconds: int) -> DownloadLink:
    filename = filename_for_key(asset.key)
    url = await asyncio.to_thread(storage.presign_get, asset.key, ttl_seconds, filename)
    return DownloadLink(label=asset.label, key=asset.key, filename=filename, url=url)


async def issue_links(
    storage: AssetStorage,
    assets: Iterable[AssetMeta],
    ttl_seconds: int,
) -> List[DownloadLink]:
    """
    Issue one signed URL per asset, concurrently.

    Any failure propagates and the links already issued are discarded; the
    caller never gets a partial list.
    """
    links = list(
        await asyncio.gather(*(issue_link(storage, asset, ttl_seconds) for asset in assets))
    )
    logger.info(f"Issued {len(links)} download link(s), ttl={ttl_seconds}s")
    return links
