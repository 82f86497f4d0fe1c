"""Data models for the pitch coaching pipeline."""

import io
import wave
from dataclasses import dataclass, field
from typing import List, Literal, Optional

import numpy as np


TipCategory = Literal["delivery", "content", "structure", "engagement"]
TipPriority = Literal["high", "medium", "low"]
SignalValue = Literal["High", "Medium", "Low", "Unclear"]

TIP_CATEGORIES = ("delivery", "content", "structure", "engagement")
TIP_PRIORITIES = ("high", "medium", "low")
SIGNAL_VALUES = ("High", "Medium", "Low", "Unclear")


@dataclass
class AudioSegment:
    """A time-boxed chunk of captured mono audio awaiting analysis."""
    samples: np.ndarray  # float32 in [-1, 1]
    sample_rate: int
    started_at: float  # monotonic ms when the slot began collecting

    @property
    def sample_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_ms(self) -> float:
        if not self.sample_rate:
            return 0.0
        return self.sample_count * 1000.0 / self.sample_rate

    @property
    def rms(self) -> float:
        if self.sample_count == 0:
            return 0.0
        f = self.samples.astype(np.float32)
        return float(np.sqrt(np.mean(f * f)))

    def to_pcm16(self) -> bytes:
        """Little-endian PCM16 bytes, clipped to the int16 range."""
        f = np.clip(self.samples.astype(np.float32), -1.0, 1.0)
        pcm = np.where(f < 0, f * 32768.0, f * 32767.0).astype(np.int16)
        return pcm.tobytes(order="C")

    def to_wav(self) -> bytes:
        """Mono 16-bit WAV container around to_pcm16()."""
        buf = io.BytesIO()
        with wave.open(buf, "wb") as w:
            w.setnchannels(1)
            w.setsampwidth(2)
            w.setframerate(int(self.sample_rate))
            w.writeframes(self.to_pcm16())
        return buf.getvalue()


@dataclass
class CoachingTip:
    """A short feedback item produced by the analysis service."""
    id: str
    text: str
    category: TipCategory = "delivery"
    priority: TipPriority = "medium"

    def to_dict(self):
        return {
            "id": self.id,
            "text": self.text,
            "category": self.category,
            "priority": self.priority
        }


@dataclass
class Signal:
    """One rated delivery dimension (Confidence, Energy, Clarity, ...)."""
    label: str
    value: SignalValue = "Unclear"

    def to_dict(self):
        return {"label": self.label, "value": self.value}


@dataclass
class AnalysisResult:
    """Response from the analysis service. Never mutated after creation."""
    transcript: str = ""  # increment heard in the submitted segment
    tips: List[CoachingTip] = field(default_factory=list)
    signals: List[Signal] = field(default_factory=list)
    coach_note: str = ""
    error: Optional[str] = None

    @property
    def has_coaching(self) -> bool:
        return bool(self.tips or self.signals or self.coach_note)


@dataclass(eq=False)
class AnalysisRequest:
    """A dispatched unit of work. Compared by identity."""
    sequence: int
    session_id: int
    payload: bytes  # WAV-encoded segment
    context: str  # bounded tail of the transcript so far
    sample_count: int
    fired_at: float  # monotonic ms


@dataclass
class PitchView:
    """The displayed projection of the latest accepted result."""
    sequence: int
    tips: List[CoachingTip] = field(default_factory=list)
    signals: List[Signal] = field(default_factory=list)
    coach_note: str = ""

    def to_dict(self):
        return {
            "sequence": self.sequence,
            "tips": [t.to_dict() for t in self.tips],
            "signals": [s.to_dict() for s in self.signals],
            "coach_note": self.coach_note
        }
