"""
Process-wide configuration.

Settings are read once from the environment (after loading a local ``.env``
via python-dotenv) and passed explicitly to the services that need them.
Routers receive them through ``Depends(get_settings)``.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

MIB = 1024 * 1024

# SES v2 rejects raw messages above this size regardless of account settings.
PROVIDER_MAX_RAW_MESSAGE_BYTES = 40 * MIB

DEFAULT_ALLOWED_PREFIXES = ("recordings/", "transcriptions/")
DEFAULT_UPLOAD_CONTENT_TYPES = ("audio/mp4", "audio/mpeg", "audio/wav", "text/plain")


def _split_csv(raw: Optional[str], default: Tuple[str, ...]) -> Tuple[str, ...]:
    if raw is None:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    """Parse a positive integer env var, falling back to the default."""
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}; using {default}")
        return default
    if value <= 0:
        logger.warning(f"Ignoring non-positive {name}={raw!r}; using {default}")
        return default
    return value


def _flag_env(env: Mapping[str, str], name: str) -> bool:
    return (env.get(name) or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_service_key: Optional[str] = None
    supabase_jwt_secret: Optional[str] = None
    supabase_public_url: Optional[str] = None
    storage_bucket: str = "dictation-files"

    allowed_prefixes: Tuple[str, ...] = DEFAULT_ALLOWED_PREFIXES
    require_uid_prefix: bool = False

    max_attachment_bytes: int = 9 * MIB
    max_raw_message_bytes: int = 10 * MIB
    mime_overhead_bytes: int = 48 * 1024
    download_url_ttl_seconds: int = 86400

    ses_region: str = "us-west-2"
    from_email: Optional[str] = None
    email_subject: str = "Your Prime Dictation files"
    email_message_text: str = "Your files are ready."

    upload_max_bytes: int = 15 * MIB
    upload_allowed_content_types: Tuple[str, ...] = DEFAULT_UPLOAD_CONTENT_TYPES

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        ``FROM_EMAIL`` wins over ``SENDER_DOMAIN``; when only the domain is
        set the sender becomes ``no-reply@<domain>``. The raw message ceiling
        is clamped to the provider's hard limit.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        from_email = (env.get("FROM_EMAIL") or "").strip() or None
        sender_domain = (env.get("SENDER_DOMAIN") or "").strip()
        if from_email is None and sender_domain:
            from_email = f"no-reply@{sender_domain}"

        max_raw = _int_env(env, "MAX_RAW_MESSAGE_BYTES", 10 * MIB)
        if max_raw > PROVIDER_MAX_RAW_MESSAGE_BYTES:
            logger.warning(
                f"MAX_RAW_MESSAGE_BYTES={max_raw} exceeds the SES limit; "
                f"clamping to {PROVIDER_MAX_RAW_MESSAGE_BYTES}"
            )
            max_raw = PROVIDER_MAX_RAW_MESSAGE_BYTES

        return cls(
            supabase_url=env.get("SUPABASE_URL") or None,
            supabase_key=env.get("SUPABASE_KEY") or None,
            supabase_service_key=env.get("SUPABASE_SERVICE_KEY") or None,
            supabase_jwt_secret=env.get("SUPABASE_JWT_SECRET") or None,
            supabase_public_url=(env.get("SUPABASE_PUBLIC_URL") or "").strip() or None,
            storage_bucket=(env.get("STORAGE_BUCKET") or "").strip() or "dictation-files",
            allowed_prefixes=_split_csv(env.get("ALLOWED_PREFIXES"), DEFAULT_ALLOWED_PREFIXES),
            require_uid_prefix=_flag_env(env, "REQUIRE_UID_PREFIX"),
            max_attachment_bytes=_int_env(env, "MAX_ATTACHMENT_MB", 9) * MIB,
            max_raw_message_bytes=max_raw,
            mime_overhead_bytes=_int_env(env, "MIME_OVERHEAD_BYTES", 48 * 1024),
            download_url_ttl_seconds=_int_env(env, "DOWNLOAD_URL_TTL_SECONDS", 86400),
            ses_region=(env.get("SES_REGION") or "").strip() or "us-west-2",
            from_email=from_email,
            email_subject=env.get("EMAIL_SUBJECT") or "Your Prime Dictation files",
            email_message_text=env.get("EMAIL_MESSAGE_TEXT") or "Your files are ready.",
            upload_max_bytes=_int_env(env, "UPLOAD_MAX_BYTES", 15 * MIB),
            upload_allowed_content_types=_split_csv(
                env.get("UPLOAD_ALLOWED_CONTENT_TYPES"), DEFAULT_UPLOAD_CONTENT_TYPES
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded on first use."""
    return Settings.from_env()
