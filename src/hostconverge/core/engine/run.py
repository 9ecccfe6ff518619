# src/hostconverge/core/engine/run.py
"""
Entry point de uma convergência.

`converge` encadeia compilação, planejamento e aplicação:

    ParameterSet + FactSet → CatalogCompiler → plan_execution → Applier → RunReport

Decisões arquiteturais:
    - Erros de compilação (parâmetros, duplicatas, referências, ciclos,
      run style) resultam em `compile_failure`, sem nenhuma chamada a
      providers
    - O manifest é criado aqui quando o contexto ainda não possui um,
      com os hashes semânticos das entradas
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from hostconverge.core.catalog.registry import Catalog
from hostconverge.core.compiler.compiler import CatalogCompiler, FactsLike, ParametersLike
from hostconverge.core.config.hashing import compute_config_hash
from hostconverge.core.errors import exception_to_payload
from hostconverge.core.exceptions import CompileError
from hostconverge.core.providers.registry import ProviderRegistry
from hostconverge.core.run_context import RUN_SCOPE, RunContext
from hostconverge.core.traceability.manifest import create_manifest

from .applier import Applier
from .planner import plan_execution
from .report import RunReport


ENGINE_VERSION = "0.1.0"


def _compile_failure(ctx: RunContext, errors) -> RunReport:
    payloads = [exception_to_payload(e).to_dict() for e in errors]
    for payload in payloads:
        ctx.log(resource=RUN_SCOPE, level="ERROR", message=payload["message"], error=payload)
    return RunReport.compile_failure(run_id=ctx.run_id, errors=payloads)


def converge(
    parameters: ParametersLike,
    facts: Optional[FactsLike],
    providers: Union[ProviderRegistry, Mapping[str, Any]],
    *,
    ctx: Optional[RunContext] = None,
    catalog: Optional[Catalog] = None,
) -> RunReport:
    """
    Executa uma convergência completa do host.

    Args:
        parameters: ParameterSet (ou mapeamento validado por `from_mapping`).
        facts: FactSet (ou mapeamento de fatos do host).
        providers: ProviderRegistry ou mapeamento tipo → provider.
        ctx: Contexto da run; criado quando ausente.
        catalog: Catálogo de módulos colaboradores (nunca mutado).

    Returns:
        RunReport: Desfecho de todos os recursos, refreshes e erros.
    """
    ctx = ctx or RunContext.create()

    try:
        compiler = CatalogCompiler(parameters, facts, catalog=catalog)
        compiled = compiler.compile()
        if compiled.errors:
            return _compile_failure(ctx, compiled.errors)
        plan = plan_execution(compiled.catalog)
    except CompileError as exc:
        return _compile_failure(ctx, [exc])

    ctx.log(
        resource=RUN_SCOPE,
        level="INFO",
        message="catalog compiled",
        run_style=compiled.run_style.style.value,
        resources=len(compiled.catalog),
        skipped_declarations=list(compiled.skipped),
    )

    if ctx.manifest is None:
        ctx.manifest = create_manifest(
            run_id=ctx.run_id,
            started_at=ctx.created_at,
            engine_version=ENGINE_VERSION,
            inputs={
                "parameters_hash": compute_config_hash(compiler.parameters.to_dict()),
                "facts_hash": compute_config_hash(compiler.facts.to_dict()),
                "catalog_hash": compute_config_hash(
                    {str(r.ref): r.to_dict() for r in compiled.catalog.list()}
                ),
            },
        )

    return Applier(plan=plan, providers=providers, ctx=ctx).apply()
