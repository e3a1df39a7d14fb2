"""
Unit tests for environment-driven settings.
"""

from dictation_mail.config import (
    MIB,
    PROVIDER_MAX_RAW_MESSAGE_BYTES,
    Settings,
)


class TestSettingsFromEnv:
    """Settings.from_env parses and defaults every recognised option."""

    def test_defaults_when_env_empty(self):
        settings = Settings.from_env({})

        assert settings.allowed_prefixes == ("recordings/", "transcriptions/")
        assert settings.require_uid_prefix is False
        assert settings.max_attachment_bytes == 9 * MIB
        assert settings.max_raw_message_bytes == 10 * MIB
        assert settings.mime_overhead_bytes == 48 * 1024
        assert settings.download_url_ttl_seconds == 86400
        assert settings.ses_region == "us-west-2"
        assert settings.from_email is None
        assert settings.storage_bucket == "dictation-files"

    def test_allowed_prefixes_are_split_and_trimmed(self):
        settings = Settings.from_env({"ALLOWED_PREFIXES": " audio/ , text/ ,, "})
        assert settings.allowed_prefixes == ("audio/", "text/")

    def test_require_uid_prefix_flag(self):
        assert Settings.from_env({"REQUIRE_UID_PREFIX": "1"}).require_uid_prefix is True
        assert Settings.from_env({"REQUIRE_UID_PREFIX": "true"}).require_uid_prefix is True
        assert Settings.from_env({"REQUIRE_UID_PREFIX": "0"}).require_uid_prefix is False

    def test_attachment_limit_is_read_in_mib(self):
        settings = Settings.from_env({"MAX_ATTACHMENT_MB": "5"})
        assert settings.max_attachment_bytes == 5 * MIB

    def test_invalid_integers_fall_back_to_defaults(self):
        settings = Settings.from_env({
            "DOWNLOAD_URL_TTL_SECONDS": "soon",
            "MIME_OVERHEAD_BYTES": "-1",
        })
        assert settings.download_url_ttl_seconds == 86400
        assert settings.mime_overhead_bytes == 48 * 1024

    def test_raw_message_ceiling_is_clamped_to_provider_limit(self):
        settings = Settings.from_env({"MAX_RAW_MESSAGE_BYTES": str(100 * MIB)})
        assert settings.max_raw_message_bytes == PROVIDER_MAX_RAW_MESSAGE_BYTES

    def test_raw_message_ceiling_can_be_lowered(self):
        settings = Settings.from_env({"MAX_RAW_MESSAGE_BYTES": str(5 * MIB)})
        assert settings.max_raw_message_bytes == 5 * MIB

    def test_sender_domain_builds_no_reply_address(self):
        settings = Settings.from_env({"SENDER_DOMAIN": "example.com"})
        assert settings.from_email == "no-reply@example.com"

    def test_from_email_wins_over_sender_domain(self):
        settings = Settings.from_env({
            "FROM_EMAIL": "files@example.org",
            "SENDER_DOMAIN": "example.com",
        })
        assert settings.from_email == "files@example.org"
