"""
External client configuration.
Uses Supabase for Auth + Storage and Amazon SES for outbound email.

Clients are created once per process from the shared Settings and handed to
routers through FastAPI dependencies.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends
from supabase import Client, create_client

from dictation_mail.config import Settings, get_settings
from dictation_mail.errors import StorageFailure
from dictation_mail.services.delivery import FileDeliveryService
from dictation_mail.services.email_sender import EmailSink, SesEmailSender
from dictation_mail.services.storage import SupabaseAssetStorage


@lru_cache
def get_supabase() -> Client:
    """Client for user-level operations (anon key), used for remote token checks."""
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")
    return create_client(settings.supabase_url, settings.supabase_key)


@lru_cache
def get_supabase_admin() -> Optional[Client]:
    """Admin client for storage operations (service key, bypasses RLS)."""
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_service_key:
        return None
    return create_client(settings.supabase_url, settings.supabase_service_key)


@lru_cache
def get_ses_sender() -> SesEmailSender:
    return SesEmailSender.for_region(get_settings().ses_region)


def get_storage(settings: Settings = Depends(get_settings)) -> SupabaseAssetStorage:
    admin = get_supabase_admin()
    if admin is None:
        raise StorageFailure("Storage client unavailable: SUPABASE_SERVICE_KEY is not configured")
    return SupabaseAssetStorage(admin, settings.storage_bucket, settings.supabase_public_url)


def get_email_sink() -> EmailSink:
    return get_ses_sender()


def get_delivery_service(
    settings: Settings = Depends(get_settings),
    storage: SupabaseAssetStorage = Depends(get_storage),
    email_sink: EmailSink = Depends(get_email_sink),
) -> FileDeliveryService:
    return FileDeliveryService(settings, storage, email_sink)
