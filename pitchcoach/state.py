from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pitchcoach.models import CoachingTip, PitchView

SessionStatus = Literal["idle", "analyzing"]


@dataclass
class SessionState:
    status: SessionStatus = "idle"
    pitch_data: Optional[PitchView] = None
    is_analyzing: bool = False
    cycle_count: int = 0
    error: Optional[str] = None
    tip_history: List[CoachingTip] = field(default_factory=list)
    pace_score: float = 0.0
    transcript: str = ""
    version: int = 0

    def reset(self) -> None:
        self.status = "idle"
        self.pitch_data = None
        self.is_analyzing = False
        self.cycle_count = 0
        self.error = None
        self.tip_history = []
        self.pace_score = 0.0
        self.transcript = ""
        self.touch()

    def touch(self) -> None:
        self.version += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "pitch_data": self.pitch_data.to_dict() if self.pitch_data else None,
            "is_analyzing": self.is_analyzing,
            "cycle_count": self.cycle_count,
            "error": self.error,
            "tip_history": [t.to_dict() for t in self.tip_history],
            "pace_score": self.pace_score,
            "transcript": self.transcript,
            "version": self.version,
        }
