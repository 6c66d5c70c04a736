"""
Nano Banana Proxy - Forwarding Gateway
Attaches the server credential and relays calls to the fal.ai queue and storage APIs
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .config import Settings
from .errors import ConfigurationError, UpstreamError
from .schemas import RequestVariant
from .utils import encode_path_segment, format_size_kb, pretty_json, response_body

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_FILENAME = "image.jpg"


@dataclass(frozen=True, slots=True)
class UpstreamResult:
    """Status code and decoded body of a successful upstream call."""

    status_code: int
    body: Any


class FalGateway:
    """
    Forwards requests to fal.ai with the server-held API key.

    One instance is shared by all requests. The HTTP client is opened in the
    application lifespan and closed on shutdown.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the gateway.

        Args:
            settings: Immutable process configuration
            client: Optional pre-built HTTP client (owned by the caller)
        """
        self.settings = settings
        self._client = client
        self._owns_client = client is None
        self._semaphore: Optional[asyncio.Semaphore] = None

    def open(self) -> None:
        """Create the HTTP client and the concurrency bound."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.upstream_timeout)
        if self.settings.max_concurrent_upstream > 0:
            self._semaphore = asyncio.Semaphore(self.settings.max_concurrent_upstream)
        logger.info(
            "Gateway ready (max concurrent upstream calls: "
            f"{self.settings.max_concurrent_upstream or 'unbounded'})"
        )

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.info("Gateway HTTP client closed")

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def require_api_key(self) -> str:
        """Return the credential, or raise ConfigurationError when it is unset."""
        if not self.settings.has_api_key:
            raise ConfigurationError()
        return self.settings.fal_api_key

    def _json_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Key {self.require_api_key()}",
            "Content-Type": "application/json",
        }

    def _base_url(self, variant: RequestVariant) -> str:
        if variant == RequestVariant.EDIT:
            return self.settings.edit_url
        return self.settings.generation_url

    async def _send(self, method: str, url: str, **kwargs) -> UpstreamResult:
        """
        Perform one upstream call and relay its outcome.

        Raises:
            UpstreamError: On a non-2xx status or a transport failure
        """
        if self._client is None:
            raise RuntimeError("Gateway not open. Call open() first.")

        limit = self._semaphore if self._semaphore is not None else contextlib.nullcontext()
        try:
            async with limit:
                response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Upstream call to {url} failed: {e!r}")
            raise UpstreamError() from e

        body = response_body(response)
        if not response.is_success:
            raise UpstreamError(body, response.status_code)
        return UpstreamResult(response.status_code, body)

    async def submit_generation(self, payload: Any) -> UpstreamResult:
        """POST the payload verbatim to the generation queue."""
        headers = self._json_headers()
        try:
            return await self._send("POST", self.settings.generation_url, json=payload, headers=headers)
        except UpstreamError as e:
            logger.error(f"Proxy error: {e.error}")
            raise

    async def submit_edit(self, payload: Any) -> UpstreamResult:
        """POST the payload verbatim to the edit queue, logging both bodies."""
        headers = self._json_headers()
        logger.info(f"Received edit request: {pretty_json(payload)}")
        try:
            result = await self._send("POST", self.settings.edit_url, json=payload, headers=headers)
        except UpstreamError as e:
            logger.error(f"Edit proxy error: {e.error}")
            logger.error(f"Request body was: {pretty_json(payload)}")
            raise

        logger.info("Edit request submitted successfully")
        logger.info(f"Full response structure: {pretty_json(result.body)}")
        return result

    async def get_status(self, request_id: str, variant: RequestVariant) -> UpstreamResult:
        """
        Fetch the queue status of a previously submitted request.

        Args:
            request_id: Opaque id returned by the upstream on submission
            variant: Queue the id belongs to

        Returns:
            Upstream status payload
        """
        headers = self._json_headers()
        url = f"{self._base_url(variant)}/requests/{encode_path_segment(request_id)}/status"
        try:
            result = await self._send("GET", url, headers=headers)
        except UpstreamError as e:
            logger.error(f"{variant.value.capitalize()} status error: {e.error}")
            raise

        if variant == RequestVariant.EDIT and isinstance(result.body, dict):
            logger.info(f"Status for {request_id}: {result.body.get('status')}")
        return result

    async def get_result(self, request_id: str, variant: RequestVariant) -> UpstreamResult:
        """
        Fetch the result of a request. No waiting is done here; callers poll
        get_status until the upstream reports completion.
        """
        headers = self._json_headers()
        url = f"{self._base_url(variant)}/requests/{encode_path_segment(request_id)}"
        try:
            result = await self._send("GET", url, headers=headers)
        except UpstreamError as e:
            logger.error(f"{variant.value.capitalize()} result error: {e.error}")
            raise

        if variant == RequestVariant.EDIT:
            logger.info(f"Result for {request_id}: {pretty_json(result.body)}")
        return result

    async def upload_file(
        self,
        content: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> UpstreamResult:
        """
        Re-encode a file as multipart form data and send it to fal.ai storage.

        Args:
            content: Raw file bytes
            filename: Original filename; defaults to image.jpg when empty
            content_type: MIME type forwarded unchanged

        Returns:
            Upstream body, expected to contain the stored object's ``url``
        """
        # httpx sets the multipart Content-Type with its boundary
        headers = {"Authorization": f"Key {self.require_api_key()}"}
        filename = filename or DEFAULT_UPLOAD_FILENAME
        logger.info(f"Uploading file: {filename} ({format_size_kb(len(content))})")

        files = {"file": (filename, content, content_type)}
        try:
            result = await self._send("POST", self.settings.storage_url, files=files, headers=headers)
        except UpstreamError as e:
            logger.error(f"Upload error: {e.error}")
            raise

        url = result.body.get("url") if isinstance(result.body, dict) else None
        logger.info(f"File uploaded successfully: {url}")
        return result
