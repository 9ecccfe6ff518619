# src/hostconverge/core/compiler/compiler.py
"""
Catalog Compiler — parâmetros + fatos → catálogo de recursos.

Este módulo transforma o `ParameterSet` e o `FactSet` de uma run no
catálogo concreto que o planner ordena e o applier executa.

Fluxo de compilação:
    1. Validar parâmetros (malformado → falha imediata, sem catálogo parcial)
    2. Derivar valores (intervalo em segundos, calculado uma única vez)
    3. Selecionar o run style (delegado ao Run-Style Selector)
    4. Compor os ramos puros por concatenação
    5. Registrar recursos no catálogo, com declaração idempotente para
       grupo, usuário e diretório de configuração

Decisões arquiteturais:
    - O catálogo recebido de módulos colaboradores nunca é mutado:
      a compilação trabalha sobre uma cópia
    - Erros não fatais (run style não suportado) são acumulados e a
      compilação continua; `compile_catalog` os transforma em falha
    - Nenhuma decisão de ordenação é tomada aqui (ver planner)

Invariantes:
    - A mesma entrada produz o mesmo catálogo, na mesma ordem
    - Recursos já declarados por colaboradores não são re-emitidos

Limites explícitos:
    - Não valida arestas nem ciclos
    - Não interage com providers
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

from hostconverge.core.catalog.facts import FactSet
from hostconverge.core.catalog.registry import Catalog
from hostconverge.core.catalog.types import Resource
from hostconverge.core.config.parameters import ParameterSet
from hostconverge.core.exceptions import CompileError

from .branches import agent_resources, config_settings, identity_resources, platform_defaults
from .run_style import RunStyleSelection, select_run_style


ParametersLike = Union[ParameterSet, Mapping[str, Any]]
FactsLike = Union[FactSet, Mapping[str, Any]]


def as_parameters(parameters: ParametersLike) -> ParameterSet:
    if isinstance(parameters, ParameterSet):
        return parameters
    return ParameterSet.from_mapping(parameters)


def as_facts(facts: Optional[FactsLike]) -> FactSet:
    if isinstance(facts, FactSet):
        return facts
    return FactSet(facts or {})


@dataclass(frozen=True)
class CompiledCatalog:
    """Resultado de uma compilação: catálogo, erros acumulados e seleção de run style."""

    catalog: Catalog
    errors: Tuple[CompileError, ...]
    run_style: RunStyleSelection
    skipped: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class CatalogCompiler:
    """Compilador do módulo de agente para um host."""

    def __init__(
        self,
        parameters: ParametersLike,
        facts: Optional[FactsLike] = None,
        *,
        catalog: Optional[Catalog] = None,
    ):
        self.parameters: ParameterSet = as_parameters(parameters)
        self.facts: FactSet = as_facts(facts)
        self._base: Optional[Catalog] = catalog

    def compile(self) -> CompiledCatalog:
        parameters = self.parameters
        facts = self.facts
        catalog = self._base.copy() if self._base is not None else Catalog()

        run_interval_seconds = parameters.run_interval_seconds
        selection = select_run_style(parameters, facts)

        errors: List[CompileError] = []
        if selection.error is not None:
            errors.append(selection.error)

        skipped: List[str] = []
        guarded = identity_resources(parameters, facts, selection)
        for resource in guarded:
            if not catalog.declare_once(resource):
                skipped.append(str(resource.ref))

        declared: List[Resource] = (
            agent_resources(parameters, facts, selection)
            + list(selection.resources)
            + platform_defaults(parameters, facts, selection)
            + config_settings(parameters, facts, selection, run_interval_seconds=run_interval_seconds)
        )
        for resource in declared:
            catalog.add(resource)

        return CompiledCatalog(
            catalog=catalog,
            errors=tuple(errors),
            run_style=selection,
            skipped=tuple(skipped),
        )


def compile_catalog(
    parameters: ParametersLike,
    facts: Optional[FactsLike] = None,
    *,
    catalog: Optional[Catalog] = None,
) -> Catalog:
    """
    Compila o catálogo do host.

    Raises:
        CompileError: Parâmetros malformados, declaração duplicada ou run
            style não suportado (o primeiro erro acumulado).
    """
    compiled = CatalogCompiler(parameters, facts, catalog=catalog).compile()
    if compiled.errors:
        raise compiled.errors[0]
    return compiled.catalog
