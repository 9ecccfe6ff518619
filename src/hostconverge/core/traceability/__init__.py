"""
Pacote de rastreabilidade do hostconverge — Run Manifest v1.

API pública:
    - RunManifest        → estrutura canônica do manifest
    - create_manifest    → criação explícita do manifest
    - add_event          → registro explícito no Event Log
    - resource_started   → início da aplicação de um recurso
    - resource_finished  → desfecho não-falho de um recurso
    - resource_failed    → falha de um recurso
    - resource_refreshed → entrega de refresh
    - save_manifest / load_manifest → persistência JSON

Invariantes:
    - O manifest inicia com `resources` e `events` vazios
    - Eventos nunca são reordenados
"""

from .manifest import (
    RunManifest,
    add_event,
    create_manifest,
    load_manifest,
    resource_failed,
    resource_finished,
    resource_refreshed,
    resource_started,
    save_manifest,
)

__all__ = [
    "RunManifest",
    "add_event",
    "create_manifest",
    "load_manifest",
    "resource_failed",
    "resource_finished",
    "resource_refreshed",
    "resource_started",
    "save_manifest",
]
