"""
S3 Uploader Service
Stores generated images on AWS S3, or in the local output directory when S3 is not configured
"""

import asyncio
from pathlib import Path
import mimetypes

from ..utils.logger import get_logger
from ..config import get_settings

logger = get_logger()


class S3Uploader:
    """Async S3 uploader for provider-generated assets"""

    def __init__(self):
        self.settings = get_settings()
        self._client = None
        self._initialized = False

    @property
    def configured(self) -> bool:
        return bool(
            self.settings.aws_access_key_id
            and self.settings.aws_secret_access_key
            and self.settings.s3_bucket_name
        )

    def _ensure_initialized(self):
        """Lazy initialize S3 client"""
        if self._initialized:
            return

        if not self.configured:
            logger.debug("AWS credentials not configured, storing assets locally")
            return

        try:
            import boto3
            from botocore.config import Config

            config = Config(
                retries={'max_attempts': 3, 'mode': 'adaptive'},
                max_pool_connections=10
            )

            self._client = boto3.client(
                's3',
                aws_access_key_id=self.settings.aws_access_key_id,
                aws_secret_access_key=self.settings.aws_secret_access_key,
                region_name=self.settings.aws_region,
                config=config
            )

            self._initialized = True
            logger.info(f"S3 client initialized for bucket: {self.settings.s3_bucket_name}")

        except ImportError:
            logger.error("boto3 not installed")
            raise

    async def store_bytes(self, data: bytes, key: str) -> str:
        """
        Store a generated asset

        Args:
            data: Raw file content
            key: Object key, e.g. ``thumbnails/<id>.png``

        Returns:
            Public S3 URL, or an ``/output/...`` URL served by the app
        """
        self._ensure_initialized()

        content_type, _ = mimetypes.guess_type(key)
        content_type = content_type or 'application/octet-stream'

        loop = asyncio.get_event_loop()

        if not self._client:
            return await loop.run_in_executor(None, self._write_local, data, key)

        await loop.run_in_executor(
            None,
            lambda: self._client.put_object(
                Bucket=self.settings.s3_bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type
            )
        )

        url = f"https://{self.settings.s3_bucket_name}.s3.{self.settings.aws_region}.amazonaws.com/{key}"
        logger.info(f"Upload complete: {url}")
        return url

    def _write_local(self, data: bytes, key: str) -> str:
        """Write the asset under the output directory (blocking)"""
        path = Path(self.settings.output_dir) / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"Stored asset locally: {path}")
        return f"/output/{key}"

    async def delete_file(self, key: str) -> bool:
        """Delete a stored asset"""
        self._ensure_initialized()

        if not self._client:
            path = Path(self.settings.output_dir) / key
            if path.exists():
                path.unlink()
                return True
            return False

        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(
                None,
                lambda: self._client.delete_object(
                    Bucket=self.settings.s3_bucket_name,
                    Key=key
                )
            )
            logger.info(f"Deleted from S3: {key}")
            return True
        except Exception as e:
            logger.error(f"S3 delete failed: {e}")
            return False
