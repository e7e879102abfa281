"""Language-model backend and prompts."""

from .backend import AIBackend, OpenAICompatBackend, backend_from_settings

__all__ = ["AIBackend", "OpenAICompatBackend", "backend_from_settings"]
