# src/hostconverge/core/providers/registry.py
"""
Registro de providers por tipo de recurso.

O applier consulta este registro para cada recurso. A ausência de um
provider não é erro de compilação: ela falha apenas os recursos do tipo
afetado (ProviderUnavailable), e a run continua para os demais.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from hostconverge.core.errors import provider_unavailable
from hostconverge.core.catalog.types import Resource

from .provider import ResourceProvider, supports_refresh


@dataclass
class ProviderRegistry:
    _providers: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)

    @classmethod
    def from_mapping(cls, providers: Mapping[str, Any]) -> "ProviderRegistry":
        registry = cls()
        for resource_type, provider in providers.items():
            registry.register(resource_type, provider)
        return registry

    def register(self, resource_type: str, provider: Any) -> None:
        if not isinstance(resource_type, str) or not resource_type.strip():
            raise ValueError("resource type must be a non-empty string")
        if not isinstance(provider, ResourceProvider):
            raise TypeError(
                f"Provider for '{resource_type}' must implement read(resource) and apply(resource)"
            )
        self._providers[resource_type.strip().lower()] = provider

    def has(self, resource_type: str) -> bool:
        return resource_type.lower() in self._providers

    def types(self) -> List[str]:
        return sorted(self._providers)

    def for_resource(self, resource: Resource) -> Any:
        """Provider do tipo do recurso.

        Raises:
            ProviderUnavailable: Se nenhum provider estiver registrado.
        """
        provider = self._providers.get(resource.type)
        if provider is None:
            raise provider_unavailable(resource=str(resource.ref), resource_type=resource.type)
        return provider

    def refresher_for(self, resource: Resource) -> Any:
        """Provider com capability de refresh.

        Raises:
            ProviderUnavailable: Se o provider não existir ou não suportar refresh.
        """
        provider = self.for_resource(resource)
        if not supports_refresh(provider):
            raise provider_unavailable(
                resource=str(resource.ref),
                resource_type=resource.type,
                capability="refresh",
            )
        return provider
