"""S3-compatible content relocator.

Fetches content from its origin over HTTP and deposits a copy in an S3 (or
S3-compatible, e.g. R2) bucket. Credentials are read from the standard
AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY environment variables so they
never appear in config files.
"""

import asyncio
import logging
import os
import tempfile
from typing import Optional

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import RelocationError

logger = logging.getLogger(__name__)

# Bodies larger than this spill from memory to a temp file while uploading
_SPOOL_MAX_BYTES = 8 * 1024 * 1024


class S3Relocator:
    """Copies content from origin URLs into an S3 bucket.

    Attributes:
        bucket: Destination bucket name
        endpoint_url: Custom S3 endpoint ("" for AWS)
        public_base_url: Base URL prepended to object keys in returned URLs
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str = "",
        region: str = "",
        public_base_url: str = "",
        fetch_timeout: float = 60.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the relocator.

        Args:
            bucket: Destination bucket name
            endpoint_url: Custom S3 endpoint URL, empty for AWS
            region: Bucket region, empty for the SDK default
            public_base_url: Base URL for returned object URLs
            fetch_timeout: Timeout in seconds for fetching the origin
            http_client: Client used to fetch origins (created if omitted)

        Raises:
            ValueError: If either credential environment variable is unset
        """
        access_key = os.environ.get("AWS_ACCESS_KEY_ID")
        secret_key = os.environ.get("AWS_SECRET_ACCESS_KEY")

        if not access_key or not secret_key:
            raise ValueError(
                "Storage credentials not set. "
                "Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables."
            )

        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region = region
        self.public_base_url = public_base_url

        client_kwargs = {
            "aws_access_key_id": access_key,
            "aws_secret_access_key": secret_key,
        }
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        if region:
            client_kwargs["region_name"] = region
        self._s3 = boto3.client("s3", **client_kwargs)

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=fetch_timeout, follow_redirects=True
        )

    def object_url(self, key: str) -> str:
        """Build the caller-resolvable URL of an object in the bucket.

        Args:
            key: Object key

        Returns:
            HTTPS URL of the object
        """
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    async def relocate(
        self, source_url: str, destination_name: str, public: bool = True
    ) -> str:
        """Copy the content at source_url into the bucket.

        If the caller is cancelled while the upload is running, the upload
        still finishes in its worker thread and the spooled body is closed
        only once that thread is done with it.

        Args:
            source_url: URL to fetch
            destination_name: Object key to write
            public: Whether the object should be publicly readable

        Returns:
            URL of the stored object

        Raises:
            RelocationError: If fetching or uploading fails
        """
        logger.info(f"Relocating {source_url} to s3://{self.bucket}/{destination_name}")

        body = tempfile.SpooledTemporaryFile(max_size=_SPOOL_MAX_BYTES)
        try:
            content_type = await self._fetch(source_url, body)
        except BaseException:
            body.close()
            raise

        body.seek(0)

        extra_args = {}
        if content_type:
            extra_args["ContentType"] = content_type
        if public:
            extra_args["ACL"] = "public-read"

        loop = asyncio.get_event_loop()
        upload = loop.run_in_executor(
            None,
            lambda: self._s3.upload_fileobj(
                body, self.bucket, destination_name, ExtraArgs=extra_args
            ),
        )
        upload.add_done_callback(
            lambda future: self._finish_upload(future, body, destination_name)
        )

        try:
            await asyncio.shield(upload)
        except (BotoCoreError, ClientError) as e:
            raise RelocationError(
                f"Uploading to s3://{self.bucket}/{destination_name} failed: {e}"
            ) from e

        return self.object_url(destination_name)

    async def _fetch(self, source_url: str, body) -> str:
        """Stream source_url into body and return its content type."""
        try:
            async with self._http.stream("GET", source_url) as response:
                response.raise_for_status()
                content_type = response.headers.get("content-type", "")
                async for chunk in response.aiter_bytes():
                    body.write(chunk)
        except httpx.HTTPStatusError as e:
            raise RelocationError(
                f"Fetching {source_url} returned status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RelocationError(f"Fetching {source_url} failed: {e}") from e
        return content_type

    def _finish_upload(self, future: asyncio.Future, body, destination_name: str) -> None:
        body.close()
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(
                f"Upload to s3://{self.bucket}/{destination_name} failed: {error}"
            )

    async def close(self) -> None:
        """Close the HTTP client if this relocator created it."""
        if self._owns_http_client:
            await self._http.aclose()
