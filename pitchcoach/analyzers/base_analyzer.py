"""Abstract base class for audio analysis services."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from pitchcoach.config import Config
from pitchcoach.errors import AnalysisError
from pitchcoach.models import AnalysisResult
from pitchcoach.prompt import build_instructions

logger = logging.getLogger(__name__)


class BaseAnalyzer(ABC):
    """Abstract base class for all analyzer implementations.

    An analyzer owns one HTTP client per session; close() releases it.
    """

    name = "base"

    def __init__(
        self,
        mode: Optional[str] = None,
        custom_instructions: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the analyzer.

        Args:
            mode: Coaching mode ("science", "tech" or "business")
            custom_instructions: Extra instructions appended to the prompt
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.mode = mode or Config.COACH_MODE
        self.custom_instructions = custom_instructions if custom_instructions is not None else Config.COACH_CUSTOM_INSTRUCTIONS
        self.timeout = timeout or Config.REQUEST_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @abstractmethod
    async def analyze_audio(self, audio_wav: bytes, prior_transcript: str = "") -> AnalysisResult:
        """Analyze one audio segment.

        Args:
            audio_wav: WAV-encoded mono PCM16 audio
            prior_transcript: Bounded tail of the transcript so far

        Returns:
            AnalysisResult with the transcript increment and coaching data, or
            with `error` set when the service cannot be used

        Raises:
            AnalysisError: On transport or service failure
        """
        pass

    @property
    def instructions(self) -> str:
        return build_instructions(self.mode, self.custom_instructions)

    def update_settings(self, mode: str, custom_instructions: str = "") -> None:
        """Change coaching mode; takes effect on the next request."""
        self.mode = mode or self.mode
        self.custom_instructions = custom_instructions or ""
        logger.info(f"[ANALYZER] Settings updated: mode={self.mode}, instructions={len(self.custom_instructions)} chars")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self) -> None:
        """Release the HTTP client and any session-scoped resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, url: str, **kwargs) -> dict:
        """POST and decode JSON, mapping failures to user-facing AnalysisError."""
        client = self._get_client()
        try:
            r = await client.post(url, **kwargs)
            r.raise_for_status()
            return r.json()
        except httpx.HTTPStatusError as e:
            raise AnalysisError(self._describe_status(e.response.status_code, e)) from e
        except httpx.TimeoutException as e:
            raise AnalysisError(f"{self.name}: request timed out after {self.timeout:.0f}s") from e
        except httpx.TransportError as e:
            raise AnalysisError(
                f"{self.name}: network connection failed. Please check your internet connection."
            ) from e
        except ValueError as e:
            raise AnalysisError(f"{self.name}: malformed response from service") from e

    def _describe_status(self, status: int, exc: Exception) -> str:
        if status in (401, 403):
            return f"{self.name}: invalid or missing API key"
        if status == 429:
            return f"{self.name}: rate limit exceeded, please wait a moment"
        if status == 404:
            return f"{self.name}: model not found, check your model setting"
        return f"{self.name}: HTTP error {status}: {exc}"
