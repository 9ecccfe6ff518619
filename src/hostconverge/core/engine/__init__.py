# src/hostconverge/core/engine/__init__.py
"""
Engine do hostconverge.

Este pacote **planeja** e **aplica** o catálogo compilado de um host.

Componentes principais:
    - planner → validação estrutural e ordenação em batches
    - applier → aplicação idempotente, refresh e propagação de falhas
    - report  → RunReport e desfechos por recurso
    - run     → entry point `converge` (compilação + plano + aplicação)

Invariantes:
    - Recursos só são aplicados após seus predecessores
    - Cada recurso é aplicado no máximo uma vez por run
    - O RunReport reflete explicitamente o estado de cada recurso

Limites explícitos:
    - Não implementa providers
    - Não agenda runs recorrentes
"""

from .applier import Applier, apply_plan
from .planner import OrderedPlan, plan_execution
from .report import (
    RefreshEvent,
    RefreshStatus,
    ResourceOutcome,
    ResourceReport,
    RunReport,
    RunStatus,
)
from .run import ENGINE_VERSION, converge

__all__ = [
    "Applier",
    "apply_plan",
    "OrderedPlan",
    "plan_execution",
    "RefreshEvent",
    "RefreshStatus",
    "ResourceOutcome",
    "ResourceReport",
    "RunReport",
    "RunStatus",
    "ENGINE_VERSION",
    "converge",
]
