"""
Raw MIME message assembly for attachment delivery.

Produces a multipart/mixed message wrapping a multipart/alternative
(text + html) followed by one base64 part per attachment:

    multipart/mixed
      multipart/alternative
        text/plain; charset=UTF-8
        text/html; charset=UTF-8
      <attachment 1>
      <attachment N>

Line handling is structural: the builder collects logical lines and joins
them with CRLF, and base64 content is emitted in chunks of at most 76
characters. The message is fully materialized because the SES raw API takes
a single contiguous payload.
"""

import base64
import logging
import secrets
from email.header import Header
from email.utils import formatdate, make_msgid
from typing import List, Optional, Sequence

from dictation_mail.models.delivery import AttachmentPart

logger = logging.getLogger(__name__)

CRLF = "\r\n"
BASE64_LINE_LENGTH = 76
# RFC 5322 hard limit on line length, excluding CRLF.
MAX_LINE_OCTETS = 998


def new_boundary() -> str:
    # "=_" can never occur inside base64 output.
    return f"=_{secrets.token_hex(16)}"


def sanitize_filename(filename: str) -> str:
    """Make a filename safe to embed in a quoted header parameter."""
    cleaned = []
    for ch in filename:
        if ch in "\r\n\\":
            continue
        if ch == '"' or ord(ch) < 32 or ord(ch) > 126:
            cleaned.append("_")
        else:
            cleaned.append(ch)
    return "".join(cleaned) or "attachment"


def _header_value(value: str) -> str:
    value = " ".join(value.replace("\r", " ").replace("\n", " ").split())
    if value.isascii():
        return value
    return Header(value, "utf-8").encode()


def base64_lines(data: bytes) -> List[str]:
    encoded = base64.b64encode(data).decode("ascii")
    return [encoded[i:i + BASE64_LINE_LENGTH] for i in range(0, len(encoded), BASE64_LINE_LENGTH)]


def _split_lines(text: str) -> List[str]:
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def _is_7bit_safe(text: str) -> bool:
    if not text.isascii():
        return False
    for line in _split_lines(text):
        if len(line) > MAX_LINE_OCTETS:
            return False
        if any((ord(ch) < 32 and ch != "\t") or ch == "\x7f" for ch in line):
            return False
    return True


class MimeMessageBuilder:
    """
    Builds one raw message. Usage::

        builder = MimeMessageBuilder(from_addr, to_addr, subject)
        builder.set_bodies(text, html)
        builder.add_attachment(part)
        raw = builder.build()
    """

    def __init__(self, from_addr: str, to_addr: str, subject: str):
        self.from_addr = from_addr
        self.to_addr = to_addr
        self.subject = subject
        self._text = ""
        self._html = ""
        self._attachments: List[AttachmentPart] = []

    def set_bodies(self, text: str, html: str) -> "MimeMessageBuilder":
        self._text = text
        self._html = html
        return self

    def add_attachment(self, part: AttachmentPart) -> "MimeMessageBuilder":
        self._attachments.append(part)
        return self

    def add_attachments(self, parts: Sequence[AttachmentPart]) -> "MimeMessageBuilder":
        for part in parts:
            self.add_attachment(part)
        return self

    def _pick_boundaries(self) -> tuple:
        # Text bodies sent as 7bit are the only place a boundary could collide.
        while True:
            mixed, alternative = new_boundary(), new_boundary()
            if mixed == alternative:
                continue
            if not any(
                f"--{b}" in body
                for b in (mixed, alternative)
                for body in (self._text, self._html)
            ):
                return mixed, alternative

    @staticmethod
    def _text_part(subtype: str, body: str) -> List[str]:
        if _is_7bit_safe(body):
            encoding, content = "7bit", _split_lines(body)
        else:
            encoding, content = "base64", base64_lines(body.encode("utf-8"))
        return [
            f"Content-Type: text/{subtype}; charset=UTF-8",
            f"Content-Transfer-Encoding: {encoding}",
            "",
            *content,
        ]

    @staticmethod
    def _attachment_part(part: AttachmentPart) -> List[str]:
        filename = sanitize_filename(part.filename)
        content_type = _header_value(part.content_type) or "application/octet-stream"
        return [
            f'Content-Type: {content_type}; name="{filename}"',
            f'Content-Disposition: attachment; filename="{filename}"',
            "Content-Transfer-Encoding: base64",
            "",
            *base64_lines(part.content),
        ]

    def build(self, message_id: Optional[str] = None) -> bytes:
        mixed, alternative = self._pick_boundaries()
        domain = self.from_addr.rpartition("@")[2] or None

        lines = [
            f"From: {_header_value(self.from_addr)}",
            f"To: {_header_value(self.to_addr)}",
            f"Subject: {_header_value(self.subject)}",
            f"Date: {formatdate(localtime=False, usegmt=True)}",
            f"Message-ID: {message_id or make_msgid(domain=domain)}",
            "MIME-Version: 1.0",
            f'Content-Type: multipart/mixed; boundary="{mixed}"',
            "",
            f"--{mixed}",
            f'Content-Type: multipart/alternative; boundary="{alternative}"',
            "",
            f"--{alternative}",
            *self._text_part("plain", self._text),
            f"--{alternative}",
            *self._text_part("html", self._html),
            f"--{alternative}--",
            "",
        ]
        for part in self._attachments:
            lines.append(f"--{mixed}")
            lines.extend(self._attachment_part(part))
        lines.append(f"--{mixed}--")

        raw = (CRLF.join(lines) + CRLF).encode("ascii")
        logger.debug(
            f"Built raw message: {len(raw)} bytes, {len(self._attachments)} attachment(s)"
        )
        return raw


def build_raw_message(
    from_addr: str,
    to_addr: str,
    subject: str,
    text: str,
    html: str,
    attachments: Sequence[AttachmentPart],
) -> bytes:
    return (
        MimeMessageBuilder(from_addr, to_addr, subject)
        .set_bodies(text, html)
        .add_attachments(attachments)
        .build()
    )
