# src/hostconverge/core/compiler/run_style.py
"""
Run-Style Selector — como o agente é executado no host.

Máquina de três estados, escolhida uma única vez por compilação a partir
do parâmetro `run_style`:

    - SERVICE     → serviço de longa duração, running + enabled
    - CRON        → serviço parado/desabilitado + execução one-shot periódica
    - UNSUPPORTED → erro de compilação registrado, nenhum recurso emitido

Decisões arquiteturais:
    - Os mecanismos são mutuamente exclusivos: CRON emite explicitamente o
      serviço com `ensure=stopped` para que os dois nunca fiquem ativos
    - Um estilo não suportado nunca cai em um mecanismo default
    - O erro de estilo não interrompe a compilação dos demais recursos;
      o compilador o acumula e a run é marcada como falha

Invariantes:
    - SERVICE nunca emite recurso `cron`; CRON nunca emite serviço running
    - UNSUPPORTED emite zero recursos de execução
    - Os dois ramos suportados dependem do recurso de pacote do agente

Limites explícitos:
    - Não declara o pacote nem o arquivo de configuração (ver compiler)
    - Não troca de mecanismo durante a run
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from hostconverge.core.catalog.facts import FactSet
from hostconverge.core.catalog.types import Resource
from hostconverge.core.config.parameters import ParameterSet
from hostconverge.core.exceptions import InvalidParameterError, UnsupportedRunStyleError

from .jitter import SECOND_RUN_OFFSET, JitterWindow, jitter_minutes
from .naming import config_file_ref, package_ref, service_ref


class RunStyle(str, Enum):
    """Mecanismos de execução do agente."""

    SERVICE = "service"
    CRON = "cron"
    UNSUPPORTED = "unsupported"


def resolve_run_style(value: str) -> RunStyle:
    normalized = (value or "").strip().lower()
    if normalized == RunStyle.SERVICE.value:
        return RunStyle.SERVICE
    if normalized == RunStyle.CRON.value:
        return RunStyle.CRON
    return RunStyle.UNSUPPORTED


@dataclass(frozen=True)
class RunStyleSelection:
    """Resultado da seleção: estado escolhido, recursos emitidos e erro (se houver)."""

    style: RunStyle
    requested: str
    resources: Tuple[Resource, ...] = ()
    error: Optional[UnsupportedRunStyleError] = None
    schedule: Optional[JitterWindow] = None

    @property
    def autostart(self) -> bool:
        """O agente sobe no boot (configuração de autostart do SO é relevante)."""
        return self.style is RunStyle.SERVICE


def _service_managed(parameters: ParameterSet) -> List[Resource]:
    package = package_ref(parameters)
    return [
        Resource(
            "service",
            parameters.service_name,
            ensure="running",
            attributes={"enable": True},
            requires=[package, config_file_ref(parameters)],
            subscribes=[package],
        )
    ]


def _cron_managed(parameters: ParameterSet, facts: FactSet) -> Tuple[List[Resource], JitterWindow]:
    if parameters.run_interval > SECOND_RUN_OFFSET:
        raise InvalidParameterError(
            message=(
                f"run_interval={parameters.run_interval} incompatível com run_style=cron: "
                f"o segundo minuto de execução ultrapassaria a hora"
            ),
            details={"run_interval": parameters.run_interval, "maximum": SECOND_RUN_OFFSET},
            hint="Use run_interval <= 30 com run_style=cron.",
        )

    window = jitter_minutes(facts.host_identity or "", parameters.run_interval)
    package = package_ref(parameters)
    resources = [
        Resource(
            "service",
            parameters.service_name,
            ensure="stopped",
            attributes={"enable": False},
            requires=[package],
        ),
        Resource(
            "cron",
            parameters.service_name,
            ensure="present",
            attributes={
                "command": parameters.oneshot_command,
                "user": "root",
                "minute": window.minutes,
            },
            requires=[package, config_file_ref(parameters)],
        ),
    ]
    return resources, window


def select_run_style(parameters: ParameterSet, facts: FactSet) -> RunStyleSelection:
    """
    Escolhe o mecanismo de execução do agente e constrói seus recursos.

    Returns:
        RunStyleSelection: Sempre retornado para estilos suportados e não
            suportados; estilos não suportados carregam `error`.

    Raises:
        InvalidParameterError: Se o estilo cron receber parâmetros malformados
            (intervalo acima de 30 minutos ou host sem identidade).
    """
    style = resolve_run_style(parameters.run_style)

    if style is RunStyle.SERVICE:
        return RunStyleSelection(
            style=style,
            requested=parameters.run_style,
            resources=tuple(_service_managed(parameters)),
        )

    if style is RunStyle.CRON:
        resources, window = _cron_managed(parameters, facts)
        return RunStyleSelection(
            style=style,
            requested=parameters.run_style,
            resources=tuple(resources),
            schedule=window,
        )

    return RunStyleSelection(
        style=style,
        requested=parameters.run_style,
        error=UnsupportedRunStyleError(
            message=f"Run style não suportado: {parameters.run_style!r}",
            details={
                "run_style": parameters.run_style,
                "supported": [RunStyle.SERVICE.value, RunStyle.CRON.value],
            },
            hint="Use run_style 'service' ou 'cron'.",
        ),
    )
