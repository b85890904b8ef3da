from .base import BaseBackend, BackendKind
from .enterprise import AssistantBackend, DeveloperBackend, ServiceSession
from .gemini import GeminiBackend, GeminiClient
from .mock import MockBackend

__all__ = [
    "BaseBackend",
    "BackendKind",
    "AssistantBackend",
    "DeveloperBackend",
    "ServiceSession",
    "GeminiBackend",
    "GeminiClient",
    "MockBackend",
]
