"""
HTML and plain-text email bodies.

Both renderers take the same inputs so the two alternatives of a message
always say the same thing. When files are attached no link list is rendered,
even if links were passed in.
"""

from html import escape
from typing import Optional, Sequence

from dictation_mail.models.delivery import DownloadLink

ATTACHED_NOTE = "Your files are attached to this email."
EXPIRY_NOTE = "If a link expires, re-send from the app to generate a fresh one."


def _label(link: DownloadLink) -> str:
    return getattr(link.label, "value", link.label)


def _esc(value: str) -> str:
    return escape(str(value), quote=True)


def render_html(
    links: Sequence[DownloadLink],
    has_attachments: bool,
    message: Optional[str] = None,
) -> str:
    parts = [
        '<div style="font-family:system-ui,-apple-system,Segoe UI,Roboto,Arial,sans-serif;line-height:1.5;">'
    ]
    if message:
        parts.append(f"<p>{_esc(message)}</p>")

    if has_attachments:
        parts.append(f"<p>{_esc(ATTACHED_NOTE)}</p>")
    elif links:
        items = "".join(
            f'<li><strong>{_esc(_label(link))}</strong> &mdash; {_esc(link.filename)}: '
            f'<a href="{_esc(link.url)}">{_esc(link.url)}</a></li>'
            for link in links
        )
        parts.append(f"<p>Downloads:</p><ul>{items}</ul>")
        parts.append(f"<p>{_esc(EXPIRY_NOTE)}</p>")

    parts.append("</div>")
    return "\n".join(parts) + "\n"


def render_text(
    links: Sequence[DownloadLink],
    has_attachments: bool,
    message: Optional[str] = None,
) -> str:
    lines = []
    if message:
        lines += [message, ""]

    if has_attachments:
        lines.append(ATTACHED_NOTE)
    elif links:
        lines.append("Downloads:")
        lines += [f"- {_label(link)} — {link.filename}: {link.url}" for link in links]
        lines += ["", EXPIRY_NOTE]

    return "\n".join(lines) + "\n"
