from __future__ import annotations


def word_count(text: str) -> int:
    return len((text or "").split())


def append_transcript(running: str, increment: str) -> str:
    inc = (increment or "").strip()
    if not inc:
        return running
    return f"{running} {inc}" if running else inc


def tail_context(transcript: str, max_chars: int) -> str:
    """
    Last max_chars of the transcript, cut on a word boundary so the service
    never sees a half word at the start of its context.
    """
    s = (transcript or "").strip()
    if max_chars <= 0:
        return ""
    if len(s) <= max_chars:
        return s
    tail = s[-max_chars:]
    # Already on a boundary when the preceding char is whitespace.
    if s[-max_chars - 1].isspace():
        return tail.lstrip()
    space = tail.find(" ")
    if space == -1:
        return ""
    return tail[space + 1:].lstrip()
