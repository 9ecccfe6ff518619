"""
RunContext — contexto canônico de uma convergência.

Este módulo define o **RunContext**, a estrutura compartilhada por
planner, applier e entry point durante uma run.

O RunContext é o meio permitido de:
- registrar logs estruturados de execução (eventos, não strings livres)
- coletar warnings não fatais por recurso
- carregar a configuração do engine (noop, max_workers)
- sinalizar cancelamento entre batches
- apontar para o manifest de rastreabilidade da run (opcional)

Princípios fundamentais:
- Isolamento por execução (cada run possui seu próprio contexto)
- Nenhum estado global
- Logs sempre incluem `run_id` e `resource`
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# Escopo usado em eventos que não pertencem a um recurso específico
RUN_SCOPE = "<run>"


@dataclass
class RunContext:
    """
    Contexto de execução de uma run.

    Campos canônicos:
    - run_id: identificador único da execução
    - created_at: timestamp UTC de criação do contexto
    - config: configuração do engine (ex.: {"noop": False, "max_workers": 1})
    - meta: metadados livres do chamador
    - manifest: RunManifest da run (quando o chamador quer rastreabilidade)
    - events: log estruturado de eventos
    - warnings: warnings por recurso
    """

    run_id: str
    created_at: datetime
    config: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)
    manifest: Any = None

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    _cancel: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @classmethod
    def create(cls, *, config: Optional[Dict[str, Any]] = None, run_id: Optional[str] = None, **meta: Any) -> "RunContext":
        return cls(
            run_id=run_id or uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            config=dict(config or {}),
            meta=dict(meta),
        )

    # -----------------------------
    # Engine config
    # -----------------------------
    @property
    def noop(self) -> bool:
        return bool((self.config or {}).get("noop", False))

    @property
    def max_workers(self) -> int:
        value = (self.config or {}).get("max_workers", 1)
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            return 1

    # -----------------------------
    # Cancelamento
    # -----------------------------
    def cancel(self) -> None:
        """Pede a interrupção da run; o applier respeita o pedido entre batches."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, resource: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "resource": resource,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        with self._lock:
            self.events.append(event)

    def add_warning(self, *, resource: str, message: str) -> None:
        with self._lock:
            self.warnings.setdefault(resource, []).append(message)

    def events_for(self, resource: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("resource") == resource]
