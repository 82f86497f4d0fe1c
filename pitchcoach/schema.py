from __future__ import annotations
from typing import Any, Dict, List
import json

from pitchcoach.errors import AnalysisError
from pitchcoach.models import (
    AnalysisResult,
    CoachingTip,
    Signal,
    SIGNAL_VALUES,
    TIP_CATEGORIES,
    TIP_PRIORITIES,
)


def try_parse_json(text: str) -> Dict[str, Any]:
    """
    Best-effort JSON extraction (handles occasional extra text or markdown
    fences around the JSON object).
    """
    if text is None:
        raise AnalysisError("Empty response from analysis service")
    s = text.strip()
    if not s:
        raise AnalysisError("Empty response from analysis service")

    try:
        # direct JSON
        if s.startswith("{") and s.endswith("}"):
            return json.loads(s)

        # try to extract first {...last}
        start = s.find("{")
        end = s.rfind("}")
        if start != -1 and end != -1 and end > start:
            return json.loads(s[start:end + 1])
    except json.JSONDecodeError:
        raise AnalysisError("Failed to parse coaching response")

    raise AnalysisError("Failed to parse coaching response")


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _normalize_tip(raw: Any, index: int) -> CoachingTip | None:
    if isinstance(raw, str):
        raw = {"text": raw}
    if not isinstance(raw, dict):
        return None
    text = str(raw.get("text", "")).strip()
    if not text:
        return None
    category = str(raw.get("category", "")).strip().lower()
    priority = str(raw.get("priority", "")).strip().lower()
    return CoachingTip(
        id=str(raw.get("id") or f"t{index}").strip(),
        text=text,
        category=category if category in TIP_CATEGORIES else "delivery",
        priority=priority if priority in TIP_PRIORITIES else "medium",
    )


def _normalize_signal(raw: Any) -> Signal | None:
    if not isinstance(raw, dict):
        return None
    label = str(raw.get("label", "")).strip()
    if not label:
        return None
    value = str(raw.get("value", "")).strip().capitalize()
    return Signal(label=label, value=value if value in SIGNAL_VALUES else "Unclear")


def normalize_analysis_output(obj: Dict[str, Any], transcript: str | None = None) -> AnalysisResult:
    """
    Ensure a stable shape so the pipeline never depends on provider-specific
    formatting. `transcript` overrides whatever the model put in the object.
    """
    if not isinstance(obj, dict):
        raise AnalysisError("Analysis service did not return a JSON object")

    tips = []
    for i, raw in enumerate(_as_list(obj.get("tips")), start=1):
        tip = _normalize_tip(raw, i)
        if tip is not None:
            tips.append(tip)

    signals = []
    for raw in _as_list(obj.get("signals")):
        sig = _normalize_signal(raw)
        if sig is not None:
            signals.append(sig)

    note = obj.get("coachNote", obj.get("coach_note", "")) or ""
    if transcript is None:
        transcript = str(obj.get("transcript", "") or "")

    return AnalysisResult(
        transcript=transcript.strip(),
        tips=tips,
        signals=signals,
        coach_note=str(note).strip(),
    )
