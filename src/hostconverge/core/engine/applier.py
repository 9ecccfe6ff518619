# src/hostconverge/core/engine/applier.py
"""
Convergence Applier — aplicação idempotente do plano.

O applier percorre o OrderedPlan batch a batch e, para cada recurso:

    1. verifica predecessores (`requires`) que falharam ou foram pulados
    2. resolve o provider do tipo do recurso
    3. lê o estado atual (`read`)
    4. compara com o estado desejado (`insync`, ou igualdade de atributos)
    5. chama `apply` somente quando o recurso está fora de sincronismo

Recursos `changed` enfileiram refresh para seus alvos. A entrega acontece
ao fim do batch em que o alvo e todos os seus notificadores potenciais já
têm desfecho: um único refresh cobre todos os notificadores que mudaram.
O planner garante que os dependentes do alvo só rodam depois disso.

Decisões arquiteturais:
    - Falhas são locais: o recurso falha, seus dependentes transitivos são
      pulados e o restante do plano continua (partial failure)
    - Exceções de providers são encapsuladas em ApplyError e viram
      ErrorPayload (sem stack trace no report)
    - Modo noop: nada é aplicado nem refrescado; mudanças viram `pending`
    - Cancelamento é verificado entre batches; nada é desfeito
    - Com `max_workers > 1`, recursos de um mesmo batch rodam em um
      ThreadPoolExecutor; o registro (report, log, manifest) acontece
      sempre na thread principal, em ordem de declaração

Invariantes:
    - `apply` nunca é chamado para um recurso já em sincronismo
    - `refresh` é chamado no máximo uma vez por recurso por run
    - Todo recurso do plano aparece exatamente uma vez no report

Limites explícitos:
    - Não compila catálogos
    - Não impõe timeouts aos providers
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from hostconverge.core.catalog.types import Resource, ResourceRef
from hostconverge.core.errors import apply_error, exception_to_payload
from hostconverge.core.exceptions import ConvergeException
from hostconverge.core.providers.provider import attribute_changes, is_insync
from hostconverge.core.providers.registry import ProviderRegistry
from hostconverge.core.run_context import RUN_SCOPE, RunContext
from hostconverge.core.traceability.manifest import (
    resource_failed,
    resource_finished,
    resource_refreshed,
    resource_started,
)

from .planner import OrderedPlan
from .report import (
    BLOCKING_OUTCOMES,
    RefreshEvent,
    RefreshStatus,
    ResourceOutcome,
    ResourceReport,
    RunReport,
    summarize_status,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_registry(providers: Union[ProviderRegistry, Mapping[str, Any]]) -> ProviderRegistry:
    if isinstance(providers, ProviderRegistry):
        return providers
    return ProviderRegistry.from_mapping(providers)


def _failure_payload(exc: Exception, *, resource: str, operation: str) -> Dict[str, Any]:
    if not isinstance(exc, ConvergeException):
        exc = apply_error(resource=resource, exc=exc, operation=operation)
    return exception_to_payload(exc, resource=resource).to_dict()


@dataclass
class _Step:
    """Resultado bruto de um recurso, antes do registro."""

    resource: Resource
    outcome: ResourceOutcome
    detail: str = ""
    changes: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, Any]] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class Applier:
    """Applier canônico do hostconverge."""

    def __init__(
        self,
        *,
        plan: OrderedPlan,
        providers: Union[ProviderRegistry, Mapping[str, Any]],
        ctx: RunContext,
    ):
        self.plan = plan
        self.providers = _as_registry(providers)
        self.ctx = ctx

        self._entries: Dict[ResourceRef, ResourceReport] = {}
        self._refreshes: List[RefreshEvent] = []
        self._errors: List[Dict[str, Any]] = []

        # alvo -> notificadores que mudaram, ainda não entregues
        self._queued: Dict[ResourceRef, List[ResourceRef]] = {}
        self._index = {r.ref: i for i, r in enumerate(plan.order)}
        self._by_ref = {r.ref: r for r in plan.order}

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------
    def apply(self) -> RunReport:
        noop = self.ctx.noop
        self.ctx.log(
            resource=RUN_SCOPE,
            level="INFO",
            message="run started",
            resources=len(self.plan),
            batches=len(self.plan.batches),
            noop=noop,
        )

        cancelled = False
        for position, batch in enumerate(self.plan.batches):
            if self.ctx.cancelled:
                cancelled = True
                self._mark_not_applied(self.plan.batches[position:])
                break

            for step in self._run_batch(batch):
                self._record(step)
            self._deliver_refreshes()

        self._drop_undelivered()

        entries = tuple(self._entries[r.ref] for r in self.plan.order)
        status = summarize_status(entries, cancelled=cancelled)
        self.ctx.log(
            resource=RUN_SCOPE,
            level="INFO" if status.value == "success" else "WARNING",
            message="run finished",
            status=status.value,
            cancelled=cancelled,
        )
        return RunReport(
            run_id=self.ctx.run_id,
            status=status,
            entries=entries,
            refreshes=tuple(self._refreshes),
            errors=tuple(self._errors),
            cancelled=cancelled,
            noop=noop,
        )

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def _run_batch(self, batch: Sequence[Resource]) -> List[_Step]:
        workers = min(self.ctx.max_workers, len(batch))
        if workers <= 1:
            return [self._converge(resource) for resource in batch]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="hostconverge") as pool:
            # map preserva a ordem de submissão
            return list(pool.map(self._converge, batch))

    def _blocking_dependency(self, resource: Resource) -> Optional[ResourceRef]:
        for dep in resource.requires:
            entry = self._entries.get(dep)
            if entry is not None and entry.outcome in BLOCKING_OUTCOMES:
                return dep
        return None

    def _converge(self, resource: Resource) -> _Step:
        blocked_by = self._blocking_dependency(resource)
        if blocked_by is not None:
            return _Step(
                resource=resource,
                outcome=ResourceOutcome.SKIPPED,
                detail=f"dependency {blocked_by} did not converge",
            )

        started = _now()
        ref = str(resource.ref)
        try:
            provider = self.providers.for_resource(resource)
            current = provider.read(resource) or {}
            if is_insync(provider, resource, current):
                return _Step(resource, ResourceOutcome.UNCHANGED, "in sync", started_at=started, finished_at=_now())

            changes = attribute_changes(resource, current)
            if self.ctx.noop:
                return _Step(
                    resource,
                    ResourceOutcome.PENDING,
                    "would change (noop)",
                    changes=changes,
                    started_at=started,
                    finished_at=_now(),
                )

            provider.apply(resource)
            return _Step(resource, ResourceOutcome.CHANGED, "applied", changes=changes, started_at=started, finished_at=_now())
        except Exception as exc:
            error = _failure_payload(exc, resource=ref, operation="apply")

        return _Step(
            resource,
            ResourceOutcome.FAILED,
            error["message"],
            error=error,
            started_at=started,
            finished_at=_now(),
        )

    # ------------------------------------------------------------------
    # Registro (thread principal)
    # ------------------------------------------------------------------
    def _record(self, step: _Step) -> None:
        resource = step.resource
        ref = resource.ref
        manifest = self.ctx.manifest

        if manifest is not None and step.started_at is not None:
            resource_started(manifest, resource=str(ref), resource_type=resource.type, ts=step.started_at)

        self._entries[ref] = ResourceReport(
            ref=ref,
            outcome=step.outcome,
            detail=step.detail,
            changes=dict(step.changes),
            error=step.error,
            started_at=step.started_at.isoformat() if step.started_at else None,
            finished_at=step.finished_at.isoformat() if step.finished_at else None,
        )

        ts = step.finished_at or _now()
        if step.outcome is ResourceOutcome.FAILED:
            self._errors.append(dict(step.error or {}))
            if manifest is not None:
                resource_failed(manifest, resource=str(ref), ts=ts, error=step.error or {})
            self.ctx.log(resource=str(ref), level="ERROR", message=step.detail, error=step.error)
        else:
            if manifest is not None:
                resource_finished(
                    manifest,
                    resource=str(ref),
                    ts=ts,
                    result={"outcome": step.outcome.value, "detail": step.detail, "changes": step.changes},
                )
            level = "WARNING" if step.outcome is ResourceOutcome.SKIPPED else "INFO"
            self.ctx.log(resource=str(ref), level=level, message=step.detail, outcome=step.outcome.value)
            if step.outcome is ResourceOutcome.SKIPPED:
                self.ctx.add_warning(resource=str(ref), message=step.detail)

        if step.outcome in (ResourceOutcome.CHANGED, ResourceOutcome.PENDING):
            for target in self.plan.targets_for(ref):
                self._queue_refresh(target, ref)

    def _queue_refresh(self, target: ResourceRef, source: ResourceRef) -> None:
        sources = self._queued.setdefault(target, [])
        if source not in sources:
            sources.append(source)

    def _mark_not_applied(self, batches: Sequence[Tuple[Resource, ...]]) -> None:
        for batch in batches:
            for resource in batch:
                ref = resource.ref
                self._entries[ref] = ResourceReport(ref=ref, outcome=ResourceOutcome.NOT_APPLIED, detail="run cancelled")
                if self.ctx.manifest is not None:
                    resource_finished(
                        self.ctx.manifest,
                        resource=str(ref),
                        ts=_now(),
                        result={"outcome": ResourceOutcome.NOT_APPLIED.value, "detail": "run cancelled"},
                    )
        self.ctx.log(resource=RUN_SCOPE, level="WARNING", message="run cancelled; remaining resources not applied")

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------
    def _refresh_ready(self, target: ResourceRef) -> bool:
        if target not in self._entries:
            return False
        return all(source in self._entries for source in self.plan.sources_for(target))

    def _deliver_refreshes(self) -> None:
        ready = [t for t in self._queued if self._refresh_ready(t)]
        for target in sorted(ready, key=lambda r: self._index[r]):
            sources = tuple(sorted(self._queued.pop(target), key=lambda r: self._index[r]))
            entry = self._entries[target]

            if entry.outcome in BLOCKING_OUTCOMES:
                self._emit_refresh(target, sources, RefreshStatus.DROPPED, f"target is {entry.outcome.value}")
                continue

            if self.ctx.noop:
                self._emit_refresh(target, sources, RefreshStatus.NOOP, "would refresh (noop)")
                continue

            resource = self._by_ref[target]
            try:
                provider = self.providers.refresher_for(resource)
                provider.refresh(resource)
            except Exception as exc:
                payload = _failure_payload(exc, resource=str(target), operation="refresh")
                self._entries[target] = replace(
                    entry,
                    outcome=ResourceOutcome.FAILED,
                    detail="refresh failed",
                    error=payload,
                )
                self._errors.append(payload)
                if self.ctx.manifest is not None:
                    resource_failed(self.ctx.manifest, resource=str(target), ts=_now(), error=payload)
                self._emit_refresh(target, sources, RefreshStatus.FAILED, payload["message"])
                continue

            self._emit_refresh(target, sources, RefreshStatus.REFRESHED, "refreshed")

    def _drop_undelivered(self) -> None:
        for target in sorted(self._queued, key=lambda r: self._index[r]):
            # só sobra fila quando a run foi cancelada antes da entrega
            sources = tuple(sorted(self._queued[target], key=lambda r: self._index[r]))
            self._emit_refresh(target, sources, RefreshStatus.DROPPED, "run cancelled before delivery")
        self._queued.clear()

    def _emit_refresh(
        self,
        target: ResourceRef,
        sources: Tuple[ResourceRef, ...],
        status: RefreshStatus,
        detail: str,
    ) -> None:
        self._refreshes.append(RefreshEvent(target=target, sources=sources, status=status, detail=detail))
        if self.ctx.manifest is not None:
            resource_refreshed(
                self.ctx.manifest,
                resource=str(target),
                ts=_now(),
                status=status.value,
                sources=[str(s) for s in sources],
            )
        level = "ERROR" if status is RefreshStatus.FAILED else "INFO"
        self.ctx.log(
            resource=str(target),
            level=level,
            message=f"refresh {status.value}",
            sources=[str(s) for s in sources],
            detail=detail,
        )
        if status is RefreshStatus.DROPPED:
            self.ctx.add_warning(resource=str(target), message=f"refresh dropped: {detail}")


def apply_plan(
    plan: OrderedPlan,
    providers: Union[ProviderRegistry, Mapping[str, Any]],
    ctx: RunContext,
) -> RunReport:
    return Applier(plan=plan, providers=providers, ctx=ctx).apply()
