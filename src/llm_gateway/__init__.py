"""LLM Gateway - one contract over many LLM provider APIs."""

__version__ = "0.1.0"
