# src/hostconverge/core/engine/planner.py
"""
Dependency Resolver — planejamento de aplicação do catálogo.

Este módulo valida a estrutura do catálogo e produz um plano ordenado
em batches, respeitando a relação `requires`.

O planner opera exclusivamente em nível estrutural, analisando:
    - referências de todas as arestas (requires, notifies, subscribes)
    - formação de ciclos em `requires`
    - a relação de refresh, normalizada em uma única direção

Decisões arquiteturais:
    - Ordenação topológica em camadas (Kahn por níveis)
    - Cada batch contém apenas recursos cujos predecessores estão em
      batches anteriores; recursos de um mesmo batch podem ser aplicados
      em paralelo
    - Empates são resolvidos pela ordem de declaração no catálogo
    - `notifies` e `subscribes` não impõem ordem entre notificador e alvo
    - Dependentes (`requires`) de um alvo de refresh são planejados depois
      de todos os notificadores potenciais desse alvo (arestas de espera),
      para que o desfecho do alvo, incluindo uma falha de refresh, seja
      definitivo antes que eles rodem
    - Uma aresta de espera que fecharia um ciclo (o notificador depende do
      dependente do alvo) não é adicionada
    - Ciclos são reportados com o ciclo mínimo (menor número de recursos),
      considerando apenas `requires`

Invariantes:
    - Nenhum recurso aparece antes de seus predecessores
    - Todo recurso aparece exatamente uma vez no plano
    - A mesma entrada sempre produz o mesmo plano

Limites explícitos:
    - Não aplica recursos
    - Não interage com providers nem com RunContext
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from hostconverge.core.catalog.registry import Catalog
from hostconverge.core.catalog.types import Resource, ResourceRef
from hostconverge.core.exceptions import CycleDetectedError, UnresolvedReferenceError


@dataclass(frozen=True)
class OrderedPlan:
    """
    Plano de aplicação produzido pelo planner.

    Campos:
        - batches: camadas topológicas, na ordem de aplicação
        - refresh_targets: para cada recurso notificador, os alvos de refresh
          já resolvidos (sem duplicatas, em ordem de declaração)
        - refresh_sources: relação inversa; para cada alvo, todos os
          notificadores potenciais
    """

    batches: Tuple[Tuple[Resource, ...], ...]
    refresh_targets: Mapping[ResourceRef, Tuple[ResourceRef, ...]] = field(default_factory=dict)
    refresh_sources: Mapping[ResourceRef, Tuple[ResourceRef, ...]] = field(default_factory=dict)

    @property
    def order(self) -> List[Resource]:
        return [resource for batch in self.batches for resource in batch]

    def targets_for(self, ref: ResourceRef) -> Tuple[ResourceRef, ...]:
        return tuple(self.refresh_targets.get(ref, ()))

    def sources_for(self, ref: ResourceRef) -> Tuple[ResourceRef, ...]:
        return tuple(self.refresh_sources.get(ref, ()))

    def __len__(self) -> int:
        return sum(len(batch) for batch in self.batches)


def _as_catalog(resources: Union[Catalog, Iterable[Resource]]) -> Catalog:
    if isinstance(resources, Catalog):
        return resources
    return Catalog.of(resources)


def _validate_references(catalog: Catalog) -> None:
    for resource in catalog.list():
        for relation in ("requires", "notifies", "subscribes"):
            for target in getattr(resource, relation):
                if not catalog.is_declared(target):
                    raise UnresolvedReferenceError(
                        message=f"{resource.ref} {relation} unknown resource {target}",
                        details={
                            "resource": str(resource.ref),
                            "relation": relation,
                            "target": str(target),
                        },
                        hint="Declare o recurso referenciado ou remova a aresta.",
                    )


def _refresh_targets(catalog: Catalog, index: Dict[ResourceRef, int]) -> Dict[ResourceRef, Tuple[ResourceRef, ...]]:
    targets: Dict[ResourceRef, List[ResourceRef]] = {}

    for resource in catalog.list():
        for target in resource.notifies:
            targets.setdefault(resource.ref, []).append(target)
        for source in resource.subscribes:
            targets.setdefault(source, []).append(resource.ref)

    resolved: Dict[ResourceRef, Tuple[ResourceRef, ...]] = {}
    for source, refs in targets.items():
        unique = sorted(set(refs), key=lambda r: index[r])
        resolved[source] = tuple(unique)
    return resolved


def _refresh_sources(
    refresh_targets: Mapping[ResourceRef, Tuple[ResourceRef, ...]],
    index: Dict[ResourceRef, int],
) -> Dict[ResourceRef, Tuple[ResourceRef, ...]]:
    sources: Dict[ResourceRef, List[ResourceRef]] = {}
    for source, targets in refresh_targets.items():
        for target in targets:
            sources.setdefault(target, []).append(source)
    return {
        target: tuple(sorted(refs, key=lambda r: index[r]))
        for target, refs in sorted(sources.items(), key=lambda item: index[item[0]])
    }


def _reaches(
    start: ResourceRef,
    goal: ResourceRef,
    successors: Mapping[ResourceRef, List[ResourceRef]],
) -> bool:
    seen = {start}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        if node == goal:
            return True
        for child in successors[node]:
            if child not in seen:
                seen.add(child)
                queue.append(child)
    return False


def _add_refresh_holds(
    refresh_sources: Mapping[ResourceRef, Tuple[ResourceRef, ...]],
    requires_successors: Mapping[ResourceRef, List[ResourceRef]],
    successors: Dict[ResourceRef, List[ResourceRef]],
    incoming: Dict[ResourceRef, int],
) -> None:
    """Adiciona arestas notificador -> dependente do alvo (ver docstring do módulo)."""
    for target, sources in refresh_sources.items():
        for dependant in requires_successors[target]:
            for source in sources:
                if source == dependant or dependant in successors[source]:
                    continue
                # dependente já precede o notificador: a espera fecharia um ciclo
                if _reaches(dependant, source, successors):
                    continue
                successors[source].append(dependant)
                incoming[dependant] += 1


def _layers(
    refs: List[ResourceRef],
    successors: Mapping[ResourceRef, List[ResourceRef]],
    incoming: Dict[ResourceRef, int],
    index: Dict[ResourceRef, int],
) -> List[List[ResourceRef]]:
    incoming = dict(incoming)
    layers: List[List[ResourceRef]] = []
    current = [ref for ref in refs if incoming[ref] == 0]
    while current:
        layers.append(current)
        ready: List[ResourceRef] = []
        for ref in current:
            for child in successors[ref]:
                incoming[child] -= 1
                if incoming[child] == 0:
                    ready.append(child)
        current = sorted(ready, key=lambda r: index[r])
    return layers


def _shortest_cycle_from(
    start: ResourceRef,
    successors: Mapping[ResourceRef, List[ResourceRef]],
    remaining: set,
) -> Optional[List[ResourceRef]]:
    # BFS a partir de `start` até voltar a ele, restrito aos nós não planejados
    parents: Dict[ResourceRef, Optional[ResourceRef]] = {start: None}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        for child in successors[node]:
            if child not in remaining:
                continue
            if child == start:
                path = [node]
                while parents[path[-1]] is not None:
                    path.append(parents[path[-1]])  # type: ignore[arg-type]
                path.reverse()
                return path
            if child not in parents:
                parents[child] = node
                queue.append(child)
    return None


def _minimal_cycle(
    remaining: List[ResourceRef],
    successors: Mapping[ResourceRef, List[ResourceRef]],
) -> List[ResourceRef]:
    pending = set(remaining)
    best: Optional[List[ResourceRef]] = None
    for start in remaining:
        cycle = _shortest_cycle_from(start, successors, pending)
        if cycle is not None and (best is None or len(cycle) < len(best)):
            best = cycle
    return best or list(remaining)


def plan_execution(resources: Union[Catalog, Iterable[Resource]]) -> OrderedPlan:
    """
    Valida o catálogo e produz o plano ordenado em batches.

    Args:
        resources (Catalog | Iterable[Resource]): Catálogo compilado.

    Returns:
        OrderedPlan: Batches topológicos e alvos de refresh resolvidos.

    Raises:
        DuplicateResourceError: Se um iterável contiver identidades repetidas.
        UnresolvedReferenceError: Se uma aresta apontar para recurso inexistente.
        CycleDetectedError: Se `requires` contiver ciclo (com o ciclo mínimo).
    """
    catalog = _as_catalog(resources)
    _validate_references(catalog)

    refs = catalog.refs()
    index = {ref: i for i, ref in enumerate(refs)}

    # aresta predecessor -> dependente
    successors: Dict[ResourceRef, List[ResourceRef]] = {ref: [] for ref in refs}
    incoming: Dict[ResourceRef, int] = {ref: 0 for ref in refs}
    for resource in catalog.list():
        for dep in resource.requires:
            successors[dep].append(resource.ref)
            incoming[resource.ref] += 1

    for ref in refs:
        successors[ref].sort(key=lambda r: index[r])

    layers = _layers(refs, successors, incoming, index)
    planned = {ref for layer in layers for ref in layer}

    if len(planned) != len(refs):
        remaining = [ref for ref in refs if ref not in planned]
        cycle = _minimal_cycle(remaining, successors)
        rendered = [str(ref) for ref in cycle]
        raise CycleDetectedError(
            message="Dependency cycle: " + " -> ".join(rendered + rendered[:1]),
            details={"cycle": rendered},
            hint="Remova uma das arestas 'requires' do ciclo.",
        )

    refresh_targets = _refresh_targets(catalog, index)
    refresh_sources = _refresh_sources(refresh_targets, index)

    requires_successors = {ref: list(children) for ref, children in successors.items()}
    _add_refresh_holds(refresh_sources, requires_successors, successors, incoming)
    layers = _layers(refs, successors, incoming, index)

    return OrderedPlan(
        batches=tuple(tuple(catalog.get(ref) for ref in layer) for layer in layers),
        refresh_targets=refresh_targets,
        refresh_sources=refresh_sources,
    )
