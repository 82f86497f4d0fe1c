"""Gemini analyzer: one generateContent call with the audio inline."""

import base64
import logging
import time
from typing import Optional

import httpx

from pitchcoach.analyzers.base_analyzer import BaseAnalyzer
from pitchcoach.config import Config
from pitchcoach.errors import AnalysisError
from pitchcoach.models import AnalysisResult
from pitchcoach.prompt import build_user_turn
from pitchcoach.schema import normalize_analysis_output, try_parse_json

logger = logging.getLogger(__name__)


class GeminiAnalyzer(BaseAnalyzer):
    """Google Gemini analyzer. Hears the audio directly and returns transcript plus coaching."""

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        **kwargs,
    ):
        """Initialize Gemini analyzer.

        Args:
            api_key: Gemini API key (defaults to Config.GEMINI_API_KEY)
            model: Model name to use (defaults to Config.GEMINI_MODEL)
            base_url: REST base (defaults to Config.GEMINI_BASE_URL)
        """
        super().__init__(**kwargs)
        self.api_key = api_key if api_key is not None else Config.GEMINI_API_KEY
        self.model_name = model or Config.GEMINI_MODEL
        self.base_url = (base_url or Config.GEMINI_BASE_URL).rstrip("/")

    def _build_body(self, audio_wav: bytes, prior_transcript: str) -> dict:
        return {
            "systemInstruction": {"parts": [{"text": self.instructions}]},
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": build_user_turn(prior_transcript)},
                        {
                            "inline_data": {
                                "mime_type": "audio/wav",
                                "data": base64.b64encode(audio_wav).decode("ascii"),
                            }
                        },
                    ],
                }
            ],
            "generationConfig": {
                "temperature": 0.6,
                "responseMimeType": "application/json",
                "maxOutputTokens": 512,
            },
        }

    async def analyze_audio(self, audio_wav: bytes, prior_transcript: str = "") -> AnalysisResult:
        if not self.api_key:
            return AnalysisResult(error="Gemini analyzer not initialized: GEMINI_API_KEY is missing")

        # Gemini REST: POST /v1beta/models/{model}:generateContent
        url = f"{self.base_url}/v1beta/models/{self.model_name}:generateContent"
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

        start = time.monotonic()
        data = await self._post(url, json=self._build_body(audio_wav, prior_transcript), headers=headers)

        # Extract text
        try:
            cand0 = (data.get("candidates") or [])[0]
            parts = ((cand0.get("content") or {}).get("parts") or [])
            text = "".join([p.get("text", "") for p in parts if isinstance(p, dict)])
        except (IndexError, AttributeError) as e:
            feedback = data.get("promptFeedback") if isinstance(data, dict) else None
            if feedback and feedback.get("blockReason"):
                raise AnalysisError(f"gemini: prompt blocked ({feedback['blockReason']})") from e
            raise AnalysisError("gemini: response contained no candidates") from e

        result = normalize_analysis_output(try_parse_json(text))
        logger.debug(
            f"[ANALYZER] gemini responded in {(time.monotonic() - start) * 1000:.0f}ms "
            f"transcript={len(result.transcript)} chars tips={len(result.tips)}"
        )
        return result
