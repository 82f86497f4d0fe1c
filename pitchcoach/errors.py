"""Exceptions raised by the analysis pipeline and its collaborators."""


class AudioSourceError(RuntimeError):
    """No audio device or track could be opened for capture."""


class AnalysisError(RuntimeError):
    """The analysis service failed; the message is safe to show to the user."""
