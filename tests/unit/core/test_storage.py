"""
Unit tests for the S3 asset store.
"""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from dropview.core.storage import S3StorageService, asset_key_for, image_extension, unique_filename


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "operation")


@pytest.fixture
def storage():
    service = S3StorageService()
    service.bucket_name = "dropview-assets"
    service.s3_client = Mock()
    return service


@pytest.mark.unit
class TestAssetKeys:
    def test_key_strips_extension_and_adds_folder(self):
        assert asset_key_for("beach.jpg") == "DropView/beach"

    def test_key_ignores_client_directories(self):
        assert asset_key_for("/tmp/uploads/beach.png", folder="Test") == "Test/beach"

    def test_image_extension(self):
        assert image_extension("Photo.JPEG") == "jpeg"
        assert image_extension("notes") == ""

    def test_unique_filename_keeps_extension(self):
        first = unique_filename("Beach.JPG")

        assert first.endswith(".jpg")
        assert first != unique_filename("Beach.JPG")
        assert asset_key_for(first) != asset_key_for(unique_filename("Beach.JPG"))


@pytest.mark.unit
class TestS3StorageService:
    @pytest.mark.asyncio
    async def test_put_returns_url_and_key(self, storage):
        stored = await storage.put(b"img", "beach.jpg", "image/jpeg")

        assert stored["key"] == "DropView/beach"
        assert stored["url"].endswith("/DropView/beach")
        kwargs = storage.s3_client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "dropview-assets"
        assert kwargs["ContentType"] == "image/jpeg"

    @pytest.mark.asyncio
    async def test_put_records_original_filename(self, storage):
        await storage.put(b"img", "3f2a.jpg", "image/jpeg", original_filename="beach.jpg")

        kwargs = storage.s3_client.put_object.call_args.kwargs
        assert kwargs["Key"] == "DropView/3f2a"
        assert kwargs["Metadata"] == {"original_filename": "beach.jpg"}

    @pytest.mark.asyncio
    async def test_put_failure_raises_connection_error(self, storage):
        storage.s3_client.put_object.side_effect = _client_error("InternalError")

        with pytest.raises(ConnectionError):
            await storage.put(b"img", "beach.jpg")

    @pytest.mark.asyncio
    async def test_put_without_bucket(self, storage):
        storage.bucket_name = None

        with pytest.raises(ValueError):
            await storage.put(b"img", "beach.jpg")

    @pytest.mark.asyncio
    async def test_delete_reports_success(self, storage):
        assert await storage.delete("DropView/beach") is True
        storage.s3_client.delete_object.assert_called_once_with(
            Bucket="dropview-assets", Key="DropView/beach"
        )

    @pytest.mark.asyncio
    async def test_delete_failure_returns_false(self, storage):
        storage.s3_client.delete_object.side_effect = _client_error("AccessDenied")

        assert await storage.delete("DropView/beach") is False

    @pytest.mark.asyncio
    async def test_delete_without_bucket_returns_false(self, storage):
        storage.bucket_name = None

        assert await storage.delete("DropView/beach") is False
