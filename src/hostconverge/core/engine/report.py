# src/hostconverge/core/engine/report.py
"""
Run Report — resultado de uma convergência.

O RunReport enumera o desfecho de **todo** recurso do plano, os refreshes
entregues e os erros de compilação, e deriva o status global da run.

Estados de recurso:
    - unchanged                  → já estava em sincronismo
    - changed                    → provider aplicou a mudança
    - failed                     → provider (ou refresh) falhou, ou não existe provider
    - skipped_dependency_failure → algum predecessor falhou / foi pulado
    - pending                    → modo noop: mudança necessária, não aplicada
    - not_applied                → run cancelada antes do batch do recurso

Status da run:
    - success          → nenhum erro
    - partial_failure  → algum recurso failed/skipped/not_applied, ou run cancelada
    - compile_failure  → erro de compilação, nenhum recurso aplicado

Invariantes:
    - Estruturas imutáveis e serializáveis (`to_dict`)
    - A ordem de `entries` é a ordem do plano
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from hostconverge.core.catalog.types import RefLike, ResourceRef, to_ref


class ResourceOutcome(str, Enum):
    UNCHANGED = "unchanged"
    CHANGED = "changed"
    FAILED = "failed"
    SKIPPED = "skipped_dependency_failure"
    PENDING = "pending"
    NOT_APPLIED = "not_applied"


# Desfechos que bloqueiam dependentes
BLOCKING_OUTCOMES = frozenset({ResourceOutcome.FAILED, ResourceOutcome.SKIPPED, ResourceOutcome.NOT_APPLIED})


class RunStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    COMPILE_FAILURE = "compile_failure"


class RefreshStatus(str, Enum):
    REFRESHED = "refreshed"
    FAILED = "failed"
    NOOP = "noop"
    DROPPED = "dropped"


@dataclass(frozen=True)
class ResourceReport:
    """Desfecho de um recurso."""

    ref: ResourceRef
    outcome: ResourceOutcome
    detail: str = ""
    changes: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, Any]] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None

    def as_tuple(self) -> Tuple[ResourceRef, ResourceOutcome, str]:
        return self.ref, self.outcome, self.detail

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "resource": str(self.ref),
            "outcome": self.outcome.value,
            "detail": self.detail,
            "changes": dict(self.changes),
        }
        if self.error is not None:
            data["error"] = dict(self.error)
        if self.started_at is not None:
            data["started_at"] = self.started_at
        if self.finished_at is not None:
            data["finished_at"] = self.finished_at
        return data


@dataclass(frozen=True)
class RefreshEvent:
    """Refresh entregue (ou descartado) para um alvo."""

    target: ResourceRef
    sources: Tuple[ResourceRef, ...]
    status: RefreshStatus
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": str(self.target),
            "sources": [str(s) for s in self.sources],
            "status": self.status.value,
            "detail": self.detail,
        }


def summarize_status(
    entries: Iterable[ResourceReport],
    *,
    compile_errors: Sequence[Any] = (),
    cancelled: bool = False,
) -> RunStatus:
    if compile_errors:
        return RunStatus.COMPILE_FAILURE
    if cancelled or any(e.outcome in BLOCKING_OUTCOMES for e in entries):
        return RunStatus.PARTIAL_FAILURE
    return RunStatus.SUCCESS


@dataclass(frozen=True)
class RunReport:
    run_id: str
    status: RunStatus
    entries: Tuple[ResourceReport, ...] = ()
    refreshes: Tuple[RefreshEvent, ...] = ()
    errors: Tuple[Dict[str, Any], ...] = ()
    cancelled: bool = False
    noop: bool = False

    @classmethod
    def compile_failure(cls, *, run_id: str, errors: Iterable[Dict[str, Any]]) -> "RunReport":
        return cls(run_id=run_id, status=RunStatus.COMPILE_FAILURE, errors=tuple(errors))

    @property
    def failed(self) -> bool:
        return self.status is not RunStatus.SUCCESS

    def entry(self, ref: RefLike) -> ResourceReport:
        wanted = to_ref(ref)
        for e in self.entries:
            if e.ref == wanted:
                return e
        raise KeyError(str(wanted))

    def outcome_of(self, ref: RefLike) -> ResourceOutcome:
        return self.entry(ref).outcome

    def with_outcome(self, outcome: ResourceOutcome) -> List[ResourceRef]:
        return [e.ref for e in self.entries if e.outcome is outcome]

    def refreshes_for(self, ref: RefLike) -> List[RefreshEvent]:
        wanted = to_ref(ref)
        return [r for r in self.refreshes if r.target == wanted]

    def counts(self) -> Dict[str, int]:
        out = {o.value: 0 for o in ResourceOutcome}
        for e in self.entries:
            out[e.outcome.value] += 1
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "cancelled": self.cancelled,
            "noop": self.noop,
            "counts": self.counts(),
            "entries": [e.to_dict() for e in self.entries],
            "refreshes": [r.to_dict() for r in self.refreshes],
            "errors": [dict(e) for e in self.errors],
        }
