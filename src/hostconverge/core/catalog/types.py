# src/hostconverge/core/catalog/types.py
"""
Tipos canônicos do catálogo do hostconverge.

Este módulo define a identidade e a estrutura de um recurso, a menor
unidade de estado desejado de um host.

Componentes principais:
    - ResourceRef → identidade `(type, title)`, renderizada como `Type[title]`
    - Resource    → estado desejado + arestas de ordenação e de refresh

Princípios fundamentais:
    - Recursos são imutáveis depois de construídos
    - Arestas `requires` (ordenação) e `notifies`/`subscribes` (refresh)
      são relações separadas
    - `subscribes` em B apontando para A é a forma reversa de A `notifies` B

Invariantes:
    - `type` é sempre normalizado em minúsculas
    - `title` é texto não vazio
    - Coleções de arestas são tuplas sem duplicatas, na ordem de declaração

Limites explícitos:
    - Não valida se as referências existem (responsabilidade do planner)
    - Não lê nem altera estado do host
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Tuple, Union


_REF_PATTERN = re.compile(r"^\s*([A-Za-z][A-Za-z0-9_:]*)\[(.+)\]\s*$")


@dataclass(frozen=True, order=True)
class ResourceRef:
    """Identidade de um recurso dentro de um catálogo."""

    type: str
    title: str

    def __post_init__(self) -> None:
        if not isinstance(self.type, str) or not self.type.strip():
            raise ValueError("resource type must be a non-empty string")
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValueError("resource title must be a non-empty string")
        object.__setattr__(self, "type", self.type.strip().lower())

    def __str__(self) -> str:
        type_name = "::".join(part.capitalize() for part in self.type.split("::"))
        return f"{type_name}[{self.title}]"

    @classmethod
    def parse(cls, value: str) -> "ResourceRef":
        """Converte `Type[title]` em ResourceRef."""
        match = _REF_PATTERN.match(value or "")
        if match is None:
            raise ValueError(f"Invalid resource reference: {value!r}")
        return cls(type=match.group(1), title=match.group(2))


RefLike = Union[ResourceRef, str, "Resource"]


def to_ref(value: RefLike) -> ResourceRef:
    if isinstance(value, ResourceRef):
        return value
    if isinstance(value, Resource):
        return value.ref
    if isinstance(value, str):
        return ResourceRef.parse(value)
    raise TypeError(f"Cannot build a resource reference from {type(value).__name__}")


def _refs(values: Iterable[RefLike]) -> Tuple[ResourceRef, ...]:
    out = []
    for value in values or ():
        ref = to_ref(value)
        if ref not in out:
            out.append(ref)
    return tuple(out)


@dataclass(frozen=True)
class Resource:
    """
    Unidade declarada de estado desejado.

    Campos:
        - type / title: identidade do recurso
        - ensure: estado alvo (ex.: present, absent, running, uma versão)
        - attributes: atributos específicos do tipo
        - requires: recursos que devem ser aplicados antes deste
        - notifies: recursos que recebem refresh quando este muda
        - subscribes: recursos cuja mudança dispara refresh neste

    Exemplo:
        Resource("service", "puppet", ensure="running",
                 attributes={"enable": True},
                 requires=["Package[puppet]"],
                 subscribes=["Package[puppet]"])
    """

    type: str
    title: str
    ensure: Any = "present"
    attributes: Mapping[str, Any] = field(default_factory=dict)
    requires: Tuple[ResourceRef, ...] = ()
    notifies: Tuple[ResourceRef, ...] = ()
    subscribes: Tuple[ResourceRef, ...] = ()

    def __post_init__(self) -> None:
        ref = ResourceRef(self.type, self.title)
        object.__setattr__(self, "type", ref.type)
        object.__setattr__(self, "attributes", dict(self.attributes or {}))
        object.__setattr__(self, "requires", _refs(self.requires))
        object.__setattr__(self, "notifies", _refs(self.notifies))
        object.__setattr__(self, "subscribes", _refs(self.subscribes))
        if "ensure" in self.attributes:
            raise ValueError(f"{ref}: 'ensure' must be given as a field, not as an attribute")

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(self.type, self.title)

    @property
    def desired_state(self) -> Dict[str, Any]:
        """Estado desejado completo (ensure + atributos), usado na checagem de sincronismo."""
        state = {"ensure": self.ensure}
        state.update(self.attributes)
        return state

    def with_relations(
        self,
        *,
        requires: Iterable[RefLike] = (),
        notifies: Iterable[RefLike] = (),
        subscribes: Iterable[RefLike] = (),
    ) -> "Resource":
        """Retorna uma cópia com arestas adicionais (sem duplicatas)."""
        return replace(
            self,
            requires=self.requires + _refs(requires),
            notifies=self.notifies + _refs(notifies),
            subscribes=self.subscribes + _refs(subscribes),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ref": str(self.ref),
            "ensure": self.ensure,
            "attributes": dict(self.attributes),
            "requires": [str(r) for r in self.requires],
            "notifies": [str(r) for r in self.notifies],
            "subscribes": [str(r) for r in self.subscribes],
        }
