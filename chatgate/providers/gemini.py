import json
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .base import BaseBackend
from ..config import GeminiConfig
from ..conversion import conversation_to_gemini_request
from ..errors import (
    ApiError, ConversionError, GatewayError, RateLimitError, SerializationError,
    TransportError,
)
from ..normalizer import gemini_response_to_events
from ..stream import BufferedResponseStream, ResponseStream
from ..types import Conversation, GeminiRequest, GeminiResponse

logger = logging.getLogger(__name__)

GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
REQUEST_TIMEOUT_SECONDS = 30.0


class GeminiClient:
    """
    Minimal client for the Gemini `generateContent` REST endpoint.
    """

    def __init__(
        self,
        config: GeminiConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = GEMINI_API_BASE_URL,
    ):
        """
        Initialize the client.

        Args:
            config (GeminiConfig): API key, model and temperature.
            http_client (httpx.AsyncClient, optional): Client to send requests
                with. When omitted, one is created with a fixed 30 second
                timeout and closed by `aclose()`.
            base_url (str): API root, without trailing slash.
        """
        self.api_key = config.api_key
        self.model = config.model
        self.temperature = config.temperature
        self.base_url = base_url.rstrip("/")
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS)

    def _api_url(self, endpoint: str) -> str:
        return f"{self.base_url}/models/{self.model}:{endpoint}"

    async def generate_content(self, request: GeminiRequest) -> GeminiResponse:
        """
        Send a request and return the parsed aggregate response.

        Raises:
            TransportError: Connection, DNS or timeout failure.
            RateLimitError: HTTP 429.
            ApiError: Any other non-2xx status.
            SerializationError: The body is not JSON or does not match the
                                expected response schema.
        """
        # The API key travels as a query parameter and is never logged
        logger.debug(f"Sending request to Gemini API: {json.dumps(request, default=str)}")

        try:
            response = await self._http.post(
                self._api_url("generateContent"),
                params={"key": self.api_key},
                json=request,
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out: {e}", "gemini") from e
        except httpx.ConnectError as e:
            raise TransportError(f"Connection error: {e}", "gemini") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to send request: {e}", "gemini") from e

        if response.status_code == 429:
            logger.error(f"Gemini API rate limit exceeded: {response.text}")
            raise RateLimitError(
                f"Rate limit exceeded: {response.text}",
                "gemini",
                retry_after=_retry_after(response),
            )

        if not response.is_success:
            logger.error(f"Gemini API request failed with status {response.status_code}: {response.text}")
            raise ApiError(
                f"API request failed with status {response.status_code}: {response.text}",
                "gemini",
                status=response.status_code,
                body=response.text,
            )

        try:
            parsed = GeminiResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise SerializationError(f"Failed to parse response: {e}", "gemini") from e

        logger.debug(f"Received response from Gemini API: {parsed!r}")
        return parsed

    async def test_connection(self) -> GeminiResponse:
        """
        Send a minimal prompt to check the key and model are usable.
        """
        request: GeminiRequest = {
            "contents": [{
                "role": "user",
                "parts": [{"text": "Hello, can you respond with a simple 'Hello world!' message?"}],
            }],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": 50,
            },
        }
        return await self.generate_content(request)

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class GeminiBackend(BaseBackend):
    """
    Backend for the public Gemini REST API.

    The API answers with a single aggregate response, which is materialized
    into a buffered event stream.
    """

    def __init__(self, client: GeminiClient):
        self.client = client

    async def send(self, conversation: Conversation) -> ResponseStream:
        request = conversation_to_gemini_request(conversation, self.client.temperature)
        try:
            json.dumps(request, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise ConversionError(f"Request is not JSON serializable: {e}", "gemini") from e

        try:
            response = await self.client.generate_content(request)
        except GatewayError as e:
            logger.error(f"Gemini API request failed: {e}")
            raise

        return BufferedResponseStream(gemini_response_to_events(response))

    async def aclose(self) -> None:
        await self.client.aclose()
