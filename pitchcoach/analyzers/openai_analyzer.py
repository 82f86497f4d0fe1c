"""OpenAI-compatible analyzer: whisper transcription, then JSON-mode chat coaching."""

import logging
from typing import Optional

from pitchcoach.analyzers.base_analyzer import BaseAnalyzer
from pitchcoach.config import Config
from pitchcoach.errors import AnalysisError
from pitchcoach.models import AnalysisResult
from pitchcoach.prompt import build_user_turn
from pitchcoach.schema import normalize_analysis_output, try_parse_json

logger = logging.getLogger(__name__)


class OpenAIAnalyzer(BaseAnalyzer):
    """Two-step analyzer against an OpenAI-compatible REST API."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        transcribe_model: Optional[str] = None,
        base_url: Optional[str] = None,
        min_transcript_chars: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.api_key = api_key if api_key is not None else Config.OPENAI_API_KEY
        self.model_name = model or Config.OPENAI_MODEL
        self.transcribe_model = transcribe_model or Config.OPENAI_TRANSCRIBE_MODEL
        self.base_url = (base_url or Config.OPENAI_BASE_URL).rstrip("/")
        self.min_transcript_chars = (
            min_transcript_chars if min_transcript_chars is not None else Config.MIN_TRANSCRIPT_CHARS
        )

    @property
    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def transcribe(self, audio_wav: bytes) -> str:
        data = await self._post(
            f"{self.base_url}/audio/transcriptions",
            headers=self._headers,
            files={"file": ("segment.wav", audio_wav, "audio/wav")},
            data={"model": self.transcribe_model, "language": "en"},
        )
        return str(data.get("text", "") or "").strip()

    async def coach(self, prior_transcript: str, new_text: str) -> AnalysisResult:
        body = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": self.instructions},
                {"role": "user", "content": build_user_turn(prior_transcript, new_text)},
            ],
            "response_format": {"type": "json_object"},
            "temperature": 0.6,
        }
        data = await self._post(f"{self.base_url}/chat/completions", headers=self._headers, json=body)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AnalysisError("openai: response contained no choices") from e
        return normalize_analysis_output(try_parse_json(content), transcript=new_text)

    async def analyze_audio(self, audio_wav: bytes, prior_transcript: str = "") -> AnalysisResult:
        if not self.api_key:
            return AnalysisResult(error="OpenAI analyzer not initialized: OPENAI_API_KEY is missing")

        new_text = await self.transcribe(audio_wav)

        combined = f"{prior_transcript} {new_text}".strip()
        if len(combined) < self.min_transcript_chars:
            # Too little speech for meaningful coaching yet
            logger.debug(f"[ANALYZER] openai skipping coaching, transcript={len(combined)} chars")
            return AnalysisResult(transcript=new_text)

        return await self.coach(prior_transcript, new_text)
