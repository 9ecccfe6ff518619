"""
Capabilities de Resource Provider consumidas pelo engine.

Implementações concretas (gerenciadores de pacote, serviço, cron,
editores de ini) ficam fora deste pacote.
"""

from .provider import ResourceProvider, attribute_changes, is_insync, supports_refresh
from .registry import ProviderRegistry

__all__ = [
    "ResourceProvider",
    "attribute_changes",
    "is_insync",
    "supports_refresh",
    "ProviderRegistry",
]
