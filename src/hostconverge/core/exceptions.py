"""
hostconverge — Canonical Exceptions (v1)

Este módulo define as exceções tipadas internas do hostconverge.

Objetivo:
- Permitir que compilador, planner e applier levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para ErrorPayload (ver `core.errors`)
- Evitar ValueError/RuntimeError genéricos em guardrails críticos

Hierarquia:
- CompileError → falha fatal antes de qualquer mutação no host
    - InvalidParameterError, DuplicateResourceError, UnresolvedReferenceError,
      CycleDetectedError, UnsupportedRunStyleError
- ApplyError → falha local de um recurso (não aborta a run)
- ProviderUnavailable → capability ausente para o tipo do recurso

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Mensagem curta e humana; stack trace nunca vai para payloads de erro.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, eq=False)
class ConvergeException(Exception):
    """Base class para exceções internas do hostconverge.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Compilação / Catálogo
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class CompileError(ConvergeException):
    """Erro fatal de compilação: nenhuma run é executada."""


@dataclass(frozen=True, eq=False)
class InvalidParameterError(CompileError):
    """Parâmetro ausente, malformado ou fora do domínio aceito."""


@dataclass(frozen=True, eq=False)
class DuplicateResourceError(CompileError):
    """O mesmo `(type, title)` foi declarado duas vezes no catálogo."""


@dataclass(frozen=True, eq=False)
class UnresolvedReferenceError(CompileError):
    """Uma aresta (requires/notifies/subscribes) aponta para recurso inexistente."""


@dataclass(frozen=True, eq=False)
class CycleDetectedError(CompileError):
    """A relação `requires` contém um ciclo.

    `details["cycle"]` contém o ciclo mínimo encontrado, como lista de
    referências `Type[title]` (o primeiro elemento não é repetido no fim).
    """

    @property
    def cycle(self) -> List[str]:
        return list(self.details.get("cycle", []) or [])


@dataclass(frozen=True, eq=False)
class UnsupportedRunStyleError(CompileError):
    """Run style fora dos mecanismos suportados (service, cron)."""


# ---------------------------------------------------------------------------
# Aplicação
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ApplyError(ConvergeException):
    """Falha reportada por um provider ao aplicar ou dar refresh em um recurso.

    Providers podem levantá-la diretamente com `details` próprios; qualquer
    outra exceção de provider é encapsulada nela pelo applier.
    """


@dataclass(frozen=True, eq=False)
class ProviderUnavailable(ConvergeException):
    """Nenhum provider registrado (ou capability ausente) para o tipo do recurso."""
