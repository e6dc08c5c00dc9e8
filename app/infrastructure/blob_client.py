"""HTTP client for the remote object store.

Stores and deletes image objects through a token-authenticated REST API:
``PUT {api_url}/{key}`` with the raw body, ``DELETE {api_url}/{key}``.
"""

import httpx
import structlog

from app.domain.exceptions import ImageStorageError, InfrastructureTimeoutError

logger = structlog.get_logger()


class BlobClient:
    """Client for a single object store bucket.

    Example usage:
        client = BlobClient("https://blob.example.com/v1", token="...")
        await client.put("products/img_1.jpg", data, "image/jpeg")
        await client.delete("products/img_1.jpg")
        await client.close()
    """

    def __init__(
        self,
        api_url: str,
        token: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize blob client.

        Args:
            api_url: Base URL of the object store API.
            token: Bearer token with read/write access.
            timeout: Request timeout in seconds.
            transport: Optional transport (tests inject a mock).
        """
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self.token}"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Upload an object.

        Args:
            key: Object key.
            data: Object body.
            content_type: MIME type.

        Raises:
            InfrastructureTimeoutError: If the request timed out.
            ImageStorageError: On transport failure or non-2xx response.
        """
        client = await self._get_client()
        try:
            response = await client.put(
                f"/{key}",
                content=data,
                headers={"Content-Type": content_type},
            )
        except httpx.TimeoutException as e:
            raise InfrastructureTimeoutError("blob.put", self.timeout) from e
        except httpx.HTTPError as e:
            raise ImageStorageError(
                f"Object store unreachable: {e}", details={"key": key}
            ) from e

        if response.status_code >= 300:
            raise ImageStorageError(
                f"Object store rejected upload with status {response.status_code}",
                details={"key": key, "status_code": response.status_code},
            )

        logger.debug("Blob stored", key=key, size=len(data))

    async def delete(self, key: str) -> None:
        """Delete an object; a missing object is not an error.

        Raises:
            InfrastructureTimeoutError: If the request timed out.
            ImageStorageError: On transport failure or unexpected status.
        """
        client = await self._get_client()
        try:
            response = await client.delete(f"/{key}")
        except httpx.TimeoutException as e:
            raise InfrastructureTimeoutError("blob.delete", self.timeout) from e
        except httpx.HTTPError as e:
            raise ImageStorageError(
                f"Object store unreachable: {e}", details={"key": key}
            ) from e

        if response.status_code == 404:
            logger.debug("Blob already absent", key=key)
            return
        if response.status_code >= 300:
            raise ImageStorageError(
                f"Object store rejected delete with status {response.status_code}",
                details={"key": key, "status_code": response.status_code},
            )

        logger.debug("Blob deleted", key=key)
