# src/hostconverge/core/providers/provider.py
"""
Contrato de Resource Provider.

Providers são colaboradores externos: cada tipo de recurso (package,
service, cron, file, user, group, ini_setting) é servido por um objeto
que sabe ler o estado atual do host e levá-lo ao estado desejado.
O engine nunca chama APIs de sistema operacional diretamente.

Capabilities:
    - read(resource)  → estado atual (mapeamento atributo → valor)
    - apply(resource) → converge o recurso; exceções significam falha
    - refresh(resource)            (opcional) → ação de refresh (ex.: restart)
    - insync(resource, current)    (opcional) → checagem de sincronismo própria

Decisões arquiteturais:
    - Conformidade por duck typing (`@runtime_checkable`), sem herança
    - Capabilities opcionais são detectadas via `getattr`
    - Timeouts, se existirem, são do provider e chegam como exceção

Invariantes:
    - `apply` só é chamado quando o recurso está fora de sincronismo
    - `refresh` é chamado no máximo uma vez por recurso por run
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from hostconverge.core.catalog.types import Resource


@runtime_checkable
class ResourceProvider(Protocol):
    """Capabilities mínimas que todo provider deve oferecer."""

    def read(self, resource: Resource) -> Mapping[str, Any]:
        """Lê o estado atual do recurso no host, sem efeitos colaterais."""
        ...

    def apply(self, resource: Resource) -> Any:
        """Leva o recurso ao estado desejado."""
        ...


def supports_refresh(provider: Any) -> bool:
    return callable(getattr(provider, "refresh", None))


def attribute_changes(resource: Resource, current: Mapping[str, Any]) -> dict:
    """Diferenças entre o estado desejado e o estado atual.

    Atributos ausentes no estado atual contam como divergentes.
    """
    current = current or {}
    changes = {}
    for name, desired in resource.desired_state.items():
        observed = current.get(name)
        if observed != desired:
            changes[name] = {"from": observed, "to": desired}
    return changes


def is_insync(provider: Any, resource: Resource, current: Mapping[str, Any]) -> bool:
    custom = getattr(provider, "insync", None)
    if callable(custom):
        return bool(custom(resource, current))
    return not attribute_changes(resource, current)
