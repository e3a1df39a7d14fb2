"""
Unit tests for HTML and plain-text email bodies.
"""

from dictation_mail.models.delivery import AssetLabel, DownloadLink
from dictation_mail.services.email_body import (
    ATTACHED_NOTE,
    EXPIRY_NOTE,
    render_html,
    render_text,
)


def _link(
    label: AssetLabel = AssetLabel.RECORDING,
    filename: str = "memo.m4a",
    url: str = "https://test.supabase.co/storage/v1/object/sign/b/recordings/memo.m4a?token=abc",
) -> DownloadLink:
    return DownloadLink(label=label, key=f"recordings/{filename}", filename=filename, url=url)


class TestAttachmentBodies:
    """With attachments the bodies never list links."""

    def test_text_mentions_attachments_and_skips_links(self):
        body = render_text([_link()], has_attachments=True)

        assert ATTACHED_NOTE in body
        assert "Downloads:" not in body
        assert "token=abc" not in body

    def test_html_mentions_attachments_and_skips_links(self):
        body = render_html([_link()], has_attachments=True)

        assert ATTACHED_NOTE in body
        assert "<ul>" not in body
        assert "href" not in body


class TestLinkBodies:
    def test_text_lists_each_link(self):
        links = [
            _link(),
            _link(label=AssetLabel.TRANSCRIPTION, filename="memo.txt", url="https://x/t?token=t"),
        ]
        body = render_text(links, has_attachments=False, message="Your files are ready.")

        assert body.startswith("Your files are ready.\n")
        assert f"- Recording — memo.m4a: {links[0].url}" in body
        assert "- Transcription — memo.txt: https://x/t?token=t" in body
        assert EXPIRY_NOTE in body

    def test_html_lists_each_link(self):
        body = render_html([_link()], has_attachments=False)

        assert "<li><strong>Recording</strong>" in body
        assert "memo.m4a" in body
        assert 'href="https://test.supabase.co/storage/v1/object/sign/b/recordings/memo.m4a?token=abc"' in body
        assert EXPIRY_NOTE in body

    def test_empty_links_without_attachments_renders_no_download_section(self):
        text = render_text([], has_attachments=False, message="Hello")
        html = render_html([], has_attachments=False, message="Hello")

        assert "Downloads:" not in text
        assert "Downloads:" not in html
        assert "Hello" in text
        assert "Hello" in html


class TestHtmlEscaping:
    def test_interpolated_values_are_escaped(self):
        link = DownloadLink(
            label=AssetLabel.RECORDING,
            key="recordings/x.m4a",
            filename='<b>"bad"&\'name\'</b>.m4a',
            url='https://x/"onmouseover=\'alert(1)\'&a=<1>',
        )
        body = render_html([link], has_attachments=False, message="<script>alert('x')</script>")

        # Strip the template's own markup and check no metacharacter leaked from values.
        assert "<script>" not in body
        assert "<b>" not in body
        assert '"bad"' not in body
        assert "'name'" not in body
        assert "onmouseover='" not in body
        assert "&lt;b&gt;&quot;bad&quot;&amp;&#x27;name&#x27;&lt;/b&gt;.m4a" in body
        assert "&lt;script&gt;" in body
