"""
Attach-vs-link decision.

Two checks must both hold before files are attached:

1. The raw combined size is within the user-facing attachment limit.
2. The base64-encoded size plus a MIME overhead allowance stays under the
   email provider's raw message ceiling.

Base64 inflates content by 4/3, so (2) can fail even when (1) passes.
The decision is all-or-nothing: either every asset is attached or every
asset is linked.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from dictation_mail.config import Settings
from dictation_mail.models.delivery import AssetLabel, AssetMeta, DeliveryMode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttachmentLimits:
    max_attachment_bytes: int
    max_raw_message_bytes: int
    mime_overhead_bytes: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "AttachmentLimits":
        return cls(
            max_attachment_bytes=settings.max_attachment_bytes,
            max_raw_message_bytes=settings.max_raw_message_bytes,
            mime_overhead_bytes=settings.mime_overhead_bytes,
        )


def encoded_size(size_bytes: int) -> int:
    """Length of the base64 encoding of ``size_bytes`` bytes, before line breaks."""
    return -(-size_bytes // 3) * 4


def estimated_message_size(assets: Sequence[AssetMeta], limits: AttachmentLimits) -> int:
    return sum(encoded_size(a.size_bytes) for a in assets) + limits.mime_overhead_bytes


def _find_recording(assets: Sequence[AssetMeta]) -> Optional[AssetMeta]:
    for asset in assets:
        if asset.label == AssetLabel.RECORDING:
            return asset
    return None


def choose_delivery_mode(assets: Sequence[AssetMeta], limits: AttachmentLimits) -> DeliveryMode:
    recording = _find_recording(assets)
    if recording is None:
        logger.info("No recording in request; delivering as links")
        return DeliveryMode.LINKS

    combined = sum(a.size_bytes for a in assets)
    if combined > limits.max_attachment_bytes:
        logger.info(
            f"Combined size {combined} exceeds attachment limit "
            f"{limits.max_attachment_bytes}; delivering as links"
        )
        return DeliveryMode.LINKS

    estimated = estimated_message_size(assets, limits)
    if estimated >= limits.max_raw_message_bytes:
        logger.info(
            f"Encoded message size {estimated} reaches transport ceiling "
            f"{limits.max_raw_message_bytes}; delivering as links"
        )
        return DeliveryMode.LINKS

    logger.info(f"Attaching {len(assets)} file(s): raw={combined} encoded={estimated}")
    return DeliveryMode.ATTACHMENTS
