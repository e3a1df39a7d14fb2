"""
File delivery orchestration.

Sequence for one request:

    validate keys -> resolve metadata -> choose mode
      attachments: download bytes -> render bodies -> build raw MIME -> send_raw
      links:       issue signed URLs -> render bodies -> send

Every stage either completes for all assets or raises; nothing is sent after
a failure and a failed attachment fetch is never downgraded to links.
"""

import asyncio
import logging
from typing import List, Sequence

from dictation_mail.config import PROVIDER_MAX_RAW_MESSAGE_BYTES, Settings
from dictation_mail.errors import DispatchFailure
from dictation_mail.models.delivery import (
    AssetMeta,
    AttachmentPart,
    DeliveryMode,
    SendFilesRequest,
    SendFilesResponse,
)
from dictation_mail.services.assets import resolve_assets
from dictation_mail.services.attachment_policy import AttachmentLimits, choose_delivery_mode
from dictation_mail.services.email_body import render_html, render_text
from dictation_mail.services.email_sender import EmailSink
from dictation_mail.services.keys import filename_for_key, validate_key
from dictation_mail.services.links import issue_links
from dictation_mail.services.mime_builder import build_raw_message
from dictation_mail.services.storage import AssetStorage

logger = logging.getLogger(__name__)


class FileDeliveryService:
    def __init__(self, settings: Settings, storage: AssetStorage, email_sink: EmailSink):
        self.settings = settings
        self.storage = storage
        self.email_sink = email_sink
        self.limits = AttachmentLimits.from_settings(settings)

    async def _fetch_attachment(self, asset: AssetMeta) -> AttachmentPart:
        content = await asyncio.to_thread(self.storage.get, asset.key)
        return AttachmentPart(
            filename=filename_for_key(asset.key),
            content_type=asset.content_type,
            content=content,
        )

    async def _fetch_attachments(self, assets: Sequence[AssetMeta]) -> List[AttachmentPart]:
        return list(await asyncio.gather(*(self._fetch_attachment(a) for a in assets)))

    async def deliver(self, request: SendFilesRequest, subject_id: str) -> SendFilesResponse:
        """
        Email the requested files to ``request.to_email``.

        Raises:
            InvalidKey / Forbidden: a key failed validation (no storage call made)
            AssetNotFound: an object is missing (nothing sent)
            StorageFailure: storage errored while probing, fetching or signing
            DispatchFailure: sender not configured or the provider rejected the message
        """
        settings = self.settings
        from_addr = settings.from_email
        if not from_addr:
            raise DispatchFailure("Sender address is not configured (FROM_EMAIL / SENDER_DOMAIN)")

        refs = request.asset_refs()
        for ref in refs:
            validate_key(ref.key, subject_id, settings)

        assets = await resolve_assets(self.storage, refs)
        mode = choose_delivery_mode(assets, self.limits)
        message = request.message_text or settings.email_message_text

        if mode == DeliveryMode.ATTACHMENTS:
            parts = await self._fetch_attachments(assets)
            raw = build_raw_message(
                from_addr,
                request.to_email,
                settings.email_subject,
                render_text([], has_attachments=True, message=message),
                render_html([], has_attachments=True, message=message),
                parts,
            )
            if len(raw) >= PROVIDER_MAX_RAW_MESSAGE_BYTES:
                # Storage metadata understated the object sizes.
                raise DispatchFailure(
                    f"Built message is {len(raw)} bytes, over the provider's "
                    f"{PROVIDER_MAX_RAW_MESSAGE_BYTES} byte limit"
                )
            message_id = await asyncio.to_thread(
                self.email_sink.send_raw, from_addr, request.to_email, raw
            )
            links = []
        else:
            links = await issue_links(self.storage, assets, settings.download_url_ttl_seconds)
            message_id = await asyncio.to_thread(
                self.email_sink.send,
                from_addr,
                request.to_email,
                settings.email_subject,
                render_text(links, has_attachments=False, message=message),
                render_html(links, has_attachments=False, message=message),
            )

        logger.info(
            f"Sent {mode.value} email to {request.to_email} for user {subject_id}: "
            f"message_id={message_id}"
        )
        return SendFilesResponse(
            message_id=message_id,
            to_email=request.to_email,
            delivery_mode=mode,
            links=links,
        )
