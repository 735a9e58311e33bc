"""
AWS S3 asset store for post images.

This provides:
1. Image upload returning a public URL and a storage key
2. Image deletion reporting success instead of raising
3. Unique stored filenames and key derivation from them
"""

import asyncio
import logging
import os
import uuid
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from dropview.config import settings

logger = logging.getLogger(__name__)


def asset_key_for(filename: str, folder: Optional[str] = None) -> str:
    """
    Derive the storage key of an uploaded image.

    The extension is stripped and the key is namespaced under the asset
    folder, e.g. ``"beach.jpg" -> "DropView/beach"``.
    """
    stem = os.path.splitext(os.path.basename(filename or ""))[0]
    return f"{folder or settings.asset_folder}/{stem}"


def image_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lstrip(".").lower()


def unique_filename(filename: str) -> str:
    """Collision-free name to store an upload under, keeping its extension."""
    extension = os.path.splitext(os.path.basename(filename or ""))[1].lower()
    return f"{uuid.uuid4().hex}{extension}"


class S3StorageService:
    """
    AWS S3 storage service for handling image files.

    Blocking boto3 calls run in the default thread pool so request
    handlers are never blocked.
    """

    def __init__(self):
        self.s3_client = None
        self.bucket_name = settings.s3_bucket_name

    def _get_s3_client(self):
        """Get or create S3 client."""
        if not self.s3_client:
            self.s3_client = settings.get_s3_client()
        return self.s3_client

    def _public_url(self, key: str) -> str:
        if settings.s3_public_url:
            return f"{settings.s3_public_url.rstrip('/')}/{key}"
        if settings.s3_endpoint_url:
            return f"{settings.s3_endpoint_url.rstrip('/')}/{self.bucket_name}/{key}"
        return f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"

    async def put(
        self,
        file_content: bytes,
        filename: str,
        content_type: Optional[str] = None,
        original_filename: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Upload an image.

        Args:
            file_content: Image bytes
            filename: Stored filename, used to derive the key
            content_type: MIME type of the file
            original_filename: Client-side name, kept as object metadata

        Returns:
            {"url": public URL, "key": storage key}

        Raises:
            ValueError: If the bucket is not configured
            ConnectionError: If no S3 client is available or the upload fails
        """
        if not self.bucket_name:
            raise ValueError("S3 bucket name not configured")

        s3_client = self._get_s3_client()
        if not s3_client:
            raise ConnectionError("S3 client not available")

        key = asset_key_for(filename)
        upload_params = {
            "Bucket": self.bucket_name,
            "Key": key,
            "Body": file_content,
            "Metadata": {"original_filename": os.path.basename(original_filename or filename)},
        }
        if content_type:
            upload_params["ContentType"] = content_type
        if settings.is_aws_environment:
            upload_params["ServerSideEncryption"] = "AES256"

        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(
                None, lambda: s3_client.put_object(**upload_params)
            )
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            logger.error(f"S3 upload failed for {key}: {error_code} - {str(e)}")
            raise ConnectionError(f"S3 upload failed: {error_code}") from e

        logger.info(f"Successfully uploaded image to S3: {key}")
        return {"url": self._public_url(key), "key": key}

    async def delete(self, key: str) -> bool:
        """
        Delete an image.

        Args:
            key: Storage key

        Returns:
            True if deleted successfully, False otherwise
        """
        if not self.bucket_name:
            logger.warning(f"S3 bucket not configured, cannot delete {key}")
            return False

        s3_client = self._get_s3_client()
        if not s3_client:
            return False

        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(
                None, lambda: s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            )

            logger.info(f"Successfully deleted image from S3: {key}")
            return True

        except ClientError as e:
            logger.error(f"S3 delete failed for {key}: {str(e)}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error deleting from S3: {str(e)}")
            return False


# Global storage service instance
storage_service = S3StorageService()


async def init_storage():
    """Verify the S3 bucket is reachable. The app starts even if it is not."""
    try:
        if settings.s3_bucket_name:
            s3_client = storage_service._get_s3_client()
            if s3_client:
                loop = asyncio.get_event_loop()
                await loop.run_in_executor(
                    None, lambda: s3_client.head_bucket(Bucket=settings.s3_bucket_name)
                )
                logger.info(
                    f"S3 storage initialized successfully (bucket: {settings.s3_bucket_name})"
                )
            else:
                logger.warning("S3 client not available - image uploads disabled")
        else:
            logger.info("S3 bucket not configured - image uploads disabled")
    except Exception as e:
        logger.error(f"Failed to initialize S3 storage: {e}")
