"""
Completion backends.

The adapter:
1. Classifies the provider family from the model identifier
2. Wraps the prompt and composes wire parameters for that family
3. Invokes the transport and parses the reply into a UniformResponse
"""

from .adapter import BackendAdapter
from .providers import PROVIDER_PROFILES, ProviderKind, ProviderProfile
from .transport import HttpxCompletionTransport

__all__ = [
    "PROVIDER_PROFILES",
    "BackendAdapter",
    "HttpxCompletionTransport",
    "ProviderKind",
    "ProviderProfile",
]
