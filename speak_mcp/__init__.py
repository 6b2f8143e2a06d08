"""Text-to-speech dispatch for LLM tool-calling clients."""

__version__ = "0.1.0"
