"""Analyzer factory for the supported analysis services."""

from pitchcoach.analyzers.base_analyzer import BaseAnalyzer


def create_analyzer(analyzer_type: str = "gemini", **kwargs) -> BaseAnalyzer:
    """Factory function to create an analyzer instance based on type.

    Args:
        analyzer_type: Type of analyzer to create ("gemini" or "openai")
        **kwargs: Passed through to the analyzer constructor

    Returns:
        BaseAnalyzer instance

    Raises:
        ValueError: If analyzer_type is not supported
    """
    analyzer_type = analyzer_type.lower()

    if analyzer_type == "gemini":
        from pitchcoach.analyzers.gemini_analyzer import GeminiAnalyzer
        return GeminiAnalyzer(**kwargs)
    elif analyzer_type == "openai":
        from pitchcoach.analyzers.openai_analyzer import OpenAIAnalyzer
        return OpenAIAnalyzer(**kwargs)
    else:
        raise ValueError(
            f"Unsupported analyzer type: '{analyzer_type}'. "
            f"Supported types are: 'gemini', 'openai'"
        )


__all__ = ["create_analyzer", "BaseAnalyzer"]
