"""
Unit tests for asset metadata resolution.
"""

import pytest
from unittest.mock import Mock

from dictation_mail.errors import AssetNotFound, StorageFailure
from dictation_mail.models.delivery import AssetLabel, AssetRef
from dictation_mail.services.assets import infer_content_type, resolve_asset, resolve_assets
from dictation_mail.services.storage import ObjectHead


def _storage(heads: dict) -> Mock:
    """Return a mock storage whose head() answers from ``heads`` (None = missing)."""
    storage = Mock()
    storage.head.side_effect = lambda key: heads.get(key)
    return storage


RECORDING = AssetRef(key="recordings/memo.m4a", label=AssetLabel.RECORDING)
TRANSCRIPTION = AssetRef(key="transcriptions/memo.txt", label=AssetLabel.TRANSCRIPTION)


class TestInferContentType:
    @pytest.mark.parametrize("key,expected", [
        ("recordings/a.m4a", "audio/mp4"),
        ("recordings/a.mp3", "audio/mpeg"),
        ("recordings/a.wav", "audio/wav"),
        ("transcriptions/a.txt", "text/plain;charset=UTF-8"),
        ("transcriptions/a.json", "application/json"),
        ("recordings/A.M4A", "audio/mp4"),
        ("recordings/a.flac", "application/octet-stream"),
        ("recordings/noext", "application/octet-stream"),
    ])
    def test_closed_mapping(self, key, expected):
        assert infer_content_type(key) == expected


class TestResolveAsset:
    @pytest.mark.asyncio
    async def test_uses_storage_content_type(self):
        storage = _storage({RECORDING.key: ObjectHead(size_bytes=1234, content_type="audio/x-m4a")})

        meta = await resolve_asset(storage, RECORDING)

        assert meta.key == RECORDING.key
        assert meta.label == AssetLabel.RECORDING
        assert meta.size_bytes == 1234
        assert meta.content_type == "audio/x-m4a"

    @pytest.mark.asyncio
    async def test_infers_missing_content_type(self):
        storage = _storage({TRANSCRIPTION.key: ObjectHead(size_bytes=10, content_type=None)})

        meta = await resolve_asset(storage, TRANSCRIPTION)

        assert meta.content_type == "text/plain;charset=UTF-8"

    @pytest.mark.asyncio
    async def test_missing_object_raises_asset_not_found(self):
        storage = _storage({})

        with pytest.raises(AssetNotFound) as exc_info:
            await resolve_asset(storage, RECORDING)

        assert exc_info.value.status_code == 404
        assert exc_info.value.key == RECORDING.key


class TestResolveAssets:
    @pytest.mark.asyncio
    async def test_resolves_all_in_input_order(self):
        storage = _storage({
            RECORDING.key: ObjectHead(size_bytes=3_000_000, content_type="audio/mp4"),
            TRANSCRIPTION.key: ObjectHead(size_bytes=100_000, content_type=None),
        })

        metas = await resolve_assets(storage, [RECORDING, TRANSCRIPTION])

        assert [m.label for m in metas] == [AssetLabel.RECORDING, AssetLabel.TRANSCRIPTION]
        assert storage.head.call_count == 2

    @pytest.mark.asyncio
    async def test_one_missing_asset_fails_the_batch(self):
        storage = _storage({
            RECORDING.key: ObjectHead(size_bytes=3_000_000, content_type="audio/mp4"),
        })

        with pytest.raises(AssetNotFound) as exc_info:
            await resolve_assets(storage, [RECORDING, TRANSCRIPTION])

        assert exc_info.value.key == TRANSCRIPTION.key

    @pytest.mark.asyncio
    async def test_storage_error_propagates(self):
        storage = Mock()
        storage.head.side_effect = StorageFailure("boom")

        with pytest.raises(StorageFailure):
            await resolve_assets(storage, [RECORDING])

    @pytest.mark.asyncio
    async def test_no_refs_returns_empty_list(self):
        storage = _storage({})
        assert await resolve_assets(storage, []) == []
        storage.head.assert_not_called()
