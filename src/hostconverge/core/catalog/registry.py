# src/hostconverge/core/catalog/registry.py
"""
Registro de identidade do catálogo (Catalog).

Este módulo define o `Catalog`, o registro ordenado de recursos de uma
compilação. Ele é a única fonte de verdade sobre "este recurso já foi
declarado?" durante uma compilação.

Responsabilidades do módulo:
    - Garantir unicidade de `(type, title)`
    - Preservar a ordem de declaração (usada como desempate pelo planner)
    - Oferecer a declaração idempotente `declare_once`, usada para
      recursos que outros módulos colaboradores também podem declarar

Decisões arquiteturais:
    - Re-declaração via `add` é erro fatal de compilação
    - `declare_once` nunca substitui a declaração existente
    - A ordem de registro é mantida separadamente do armazenamento

Invariantes:
    - Cada ResourceRef aparece no máximo uma vez
    - `list()` reflete exatamente a ordem de registro

Limites explícitos:
    - Não valida arestas (ver planner)
    - Não aplica recursos
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List

from hostconverge.core.exceptions import DuplicateResourceError

from .types import RefLike, Resource, ResourceRef, to_ref


@dataclass
class Catalog:
    """
    Registro ordenado de recursos de uma compilação.

    Exemplo:
        catalog = Catalog()
        catalog.add(Resource("package", "puppet"))
        catalog.declare_once(Resource("user", "puppet"))   # True
        catalog.declare_once(Resource("user", "puppet"))   # False, sem erro
    """

    _resources: Dict[ResourceRef, Resource] = field(default_factory=dict, init=False, repr=False)
    _order: List[ResourceRef] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def of(cls, resources: Iterable[Resource]) -> "Catalog":
        catalog = cls()
        for resource in resources:
            catalog.add(resource)
        return catalog

    def add(self, resource: Resource) -> None:
        if not isinstance(resource, Resource):
            raise TypeError(f"Catalog only accepts Resource, received {type(resource).__name__}")

        ref = resource.ref
        if ref in self._resources:
            raise DuplicateResourceError(
                message=f"Duplicate declaration: {ref}",
                details={"resource": str(ref)},
                hint="Declare o recurso uma única vez ou use uma declaração idempotente.",
            )

        self._resources[ref] = resource
        self._order.append(ref)

    def is_declared(self, ref: RefLike) -> bool:
        return to_ref(ref) in self._resources

    def declare_once(self, resource: Resource) -> bool:
        """Adiciona o recurso apenas se sua identidade ainda não existir.

        Returns:
            bool: True se o recurso foi adicionado, False se já estava declarado.
        """
        if self.is_declared(resource.ref):
            return False
        self.add(resource)
        return True

    def get(self, ref: RefLike) -> Resource:
        return self._resources[to_ref(ref)]

    def list(self) -> List[Resource]:
        return [self._resources[ref] for ref in self._order]

    def refs(self) -> List[ResourceRef]:
        return list(self._order)

    def copy(self) -> "Catalog":
        return Catalog.of(self.list())

    def __contains__(self, ref: object) -> bool:
        try:
            return self.is_declared(ref)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return False

    def __iter__(self) -> Iterator[Resource]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._order)
