# src/hostconverge/core/traceability/manifest.py
"""
Run Manifest — rastreabilidade forense de uma convergência.

Este módulo define a estrutura e as operações canônicas do manifest de
uma run: o registro auditável do que o engine fez no host.

O manifest consolida:
    - metadados da execução (run_id, started_at, engine_version)
    - hashes das entradas (parâmetros, fatos, catálogo)
    - estado incremental de cada recurso
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem real da run
    - O manifest é serializável e reconstruível (round-trip JSON)

Decisões arquiteturais:
    - UTC é o timezone canônico de todos os timestamps
    - Persistência em JSON determinístico (chaves ordenadas)

Limites explícitos:
    - Não aplica recursos
    - Não decide políticas de execução
    - Não realiza migração de versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps timezone-naive são assumidos como UTC; os demais são convertidos."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class RunManifest:
    """
    Manifest v1 de uma convergência.

    Campos principais:
        - run: metadados da execução
        - inputs: hashes semânticos das entradas
        - resources: estado incremental por recurso (`Type[title]`)
        - events: Event Log ordenado
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    resources: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia serializável e independente do estado interno."""
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "resources": {k: dict(v) for k, v in self.resources.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        """Reconstrução permissiva: campos ausentes viram estruturas vazias."""
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            resources={k: dict(v) for k, v in (data.get("resources", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    engine_version: str,
    inputs: Optional[Dict[str, str]] = None,
) -> RunManifest:
    """
    Cria o manifest inicial de uma run.

    ⚠️ Importante: esta função **não emite eventos implicitamente**.
    O Event Log inicia vazio.

    Args:
        run_id (str): Identificador da run.
        started_at (datetime): Início da run (normalizado para UTC).
        engine_version (str): Versão do hostconverge.
        inputs (Optional[Dict[str, str]]): Hashes das entradas
            (ex.: parameters_hash, facts_hash, catalog_hash).
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "engine_version": engine_version,
        },
        inputs=dict(inputs or {}),
        resources={},
        events=[],
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: datetime,
    resource: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona um evento explícito ao Event Log.

    Invariantes:
        - Cada chamada adiciona exatamente um evento
        - Eventos não são reordenados nem deduplicados
    """
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if resource is not None:
        ev["resource"] = resource
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def resource_started(manifest: RunManifest, *, resource: str, resource_type: str, ts: datetime) -> None:
    """Marca o recurso como em aplicação (`running`) e registra `resource_started`."""
    manifest.resources.setdefault(resource, {})
    manifest.resources[resource].update(
        {
            "resource": resource,
            "type": resource_type,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="resource_started", ts=ts, resource=resource, payload={"type": resource_type})


def resource_finished(manifest: RunManifest, *, resource: str, ts: datetime, result: Dict[str, Any]) -> None:
    """
    Registra o desfecho de um recurso (qualquer outcome que não seja `failed`).

    A duração é calculada a partir de `started_at` quando disponível.
    """
    entry = manifest.resources.setdefault(resource, {"resource": resource})
    started_iso = entry.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts

    outcome = result.get("outcome", "unchanged")
    entry.update(
        {
            "status": outcome,
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "detail": result.get("detail", ""),
            "changes": result.get("changes", {}) or {},
        }
    )
    add_event(
        manifest,
        event_type="resource_finished",
        ts=ts,
        resource=resource,
        payload={"outcome": outcome, "duration_ms": entry["duration_ms"]},
    )


def resource_failed(manifest: RunManifest, *, resource: str, ts: datetime, error: Dict[str, Any]) -> None:
    """Marca o recurso como `failed` e registra o payload de erro."""
    entry = manifest.resources.setdefault(resource, {"resource": resource})
    entry.update({"status": "failed", "finished_at": _iso(ts), "error": dict(error)})
    add_event(manifest, event_type="resource_failed", ts=ts, resource=resource, payload={"error": dict(error)})


def resource_refreshed(
    manifest: RunManifest,
    *,
    resource: str,
    ts: datetime,
    status: str,
    sources: List[str],
) -> None:
    """Registra a entrega (ou descarte) de um refresh."""
    entry = manifest.resources.setdefault(resource, {"resource": resource})
    entry["refresh"] = {"status": status, "sources": list(sources), "at": _iso(ts)}
    add_event(
        manifest,
        event_type="resource_refreshed",
        ts=ts,
        resource=resource,
        payload={"status": status, "sources": list(sources)},
    )


def save_manifest(manifest: RunManifest, path: Path) -> None:
    """Persiste o manifest em JSON determinístico, criando diretórios intermediários."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True, default=str),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> RunManifest:
    """Restaura um manifest persistido por `save_manifest`."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)
