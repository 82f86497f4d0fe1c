"""Post-hoc cleanup of coaching tips returned by the analysis service."""

from __future__ import annotations

import re
from collections import deque
from dataclasses import replace
from typing import Deque, Iterable, List

from pitchcoach.models import CoachingTip

# Longest first so "You should consider" wins over "You should".
FORBIDDEN_PREFIXES = (
    "you should consider",
    "you should",
    "you mentioned",
    "you said",
    "your pitch",
    "the user",
    "try to",
    "consider",
)

DANGLING_WORDS = frozenset({
    "a", "an", "the",
    "and", "or", "but", "so", "nor", "yet", "because", "while", "when", "if", "that",
    "to", "of", "for", "with", "in", "on", "at", "by", "from", "into", "about", "as",
})

_LEADING_JUNK = " \t\n,;:-—–"
_PREFIX_RE = re.compile(
    r"^(?:%s)\b" % "|".join(re.escape(p) for p in FORBIDDEN_PREFIXES),
    re.IGNORECASE,
)
_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")


def strip_forbidden_prefixes(text: str) -> str:
    s = (text or "").strip(_LEADING_JUNK)
    while True:
        m = _PREFIX_RE.match(s)
        if not m:
            return s
        s = s[m.end():].lstrip(_LEADING_JUNK)


def truncate_words(text: str, max_words: int) -> str:
    words = text.split()
    if len(words) <= max_words:
        return " ".join(words)
    words = words[:max_words]
    while words and words[-1].lower().strip(",;:") in DANGLING_WORDS:
        words.pop()
    return " ".join(words).rstrip(",;:")


def clean_tip_text(text: str, max_words: int = 12) -> str:
    """Prefix stripping, capitalisation and length cap. Idempotent."""
    s = strip_forbidden_prefixes(text)
    s = truncate_words(s, max_words)
    if s:
        s = s[0].upper() + s[1:]
    return s


def normalize_for_compare(text: str) -> str:
    s = _PUNCT_RE.sub("", (text or "").lower())
    return _SPACE_RE.sub(" ", s).strip()


class TipSanitizer:
    """Filters tips and remembers the last few accepted ones for de-duplication.

    One instance per session; reset() on session start.
    """

    def __init__(self, max_words: int = 12, history_size: int = 6):
        self.max_words = max_words
        self.history_size = history_size
        self._recent: Deque[str] = deque()

    @property
    def recent(self) -> List[str]:
        return list(self._recent)

    def reset(self) -> None:
        self._recent.clear()

    def _is_duplicate(self, normalized: str) -> bool:
        for prior in self._recent:
            if normalized == prior or normalized in prior or prior in normalized:
                return True
        return False

    def sanitize(self, tips: Iterable[CoachingTip]) -> List[CoachingTip]:
        accepted: List[CoachingTip] = []
        for tip in tips:
            text = clean_tip_text(tip.text, self.max_words)
            normalized = normalize_for_compare(text)
            if not normalized or self._is_duplicate(normalized):
                continue
            self._recent.append(normalized)
            accepted.append(replace(tip, text=text))

        while len(self._recent) > self.history_size:
            self._recent.popleft()
        return accepted
