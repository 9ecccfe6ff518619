"""
hostconverge — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do hostconverge.
Erros fazem parte do contrato operacional do RunReport e devem ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis

Nenhum fallback silencioso é permitido: toda exceção que atravessa a
fronteira do engine é convertida em um `ErrorPayload` com código estável.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .exceptions import (
    ApplyError,
    ConvergeException,
    CycleDetectedError,
    DuplicateResourceError,
    InvalidParameterError,
    ProviderUnavailable,
    UnresolvedReferenceError,
    UnsupportedRunStyleError,
)


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do hostconverge.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Compilação
PARAMETER_INVALID = "PARAMETER_INVALID"
CATALOG_DUPLICATE_RESOURCE = "CATALOG_DUPLICATE_RESOURCE"
CATALOG_UNRESOLVED_REFERENCE = "CATALOG_UNRESOLVED_REFERENCE"
CATALOG_DEPENDENCY_CYCLE = "CATALOG_DEPENDENCY_CYCLE"
RUN_STYLE_UNSUPPORTED = "RUN_STYLE_UNSUPPORTED"

# Aplicação
PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
RESOURCE_APPLY_ERROR = "RESOURCE_APPLY_ERROR"

# Engine
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"

_CODES = (
    (InvalidParameterError, PARAMETER_INVALID),
    (DuplicateResourceError, CATALOG_DUPLICATE_RESOURCE),
    (UnresolvedReferenceError, CATALOG_UNRESOLVED_REFERENCE),
    (CycleDetectedError, CATALOG_DEPENDENCY_CYCLE),
    (UnsupportedRunStyleError, RUN_STYLE_UNSUPPORTED),
    (ProviderUnavailable, PROVIDER_UNAVAILABLE),
    (ApplyError, RESOURCE_APPLY_ERROR),
)


def error_code_for(exc: BaseException) -> str:
    """Resolve o código estável de uma exceção (primeira classe compatível)."""
    for cls, code in _CODES:
        if isinstance(exc, cls):
            return code
    return ENGINE_EXECUTION_ERROR


def exception_to_payload(exc: BaseException, *, resource: Optional[str] = None) -> ErrorPayload:
    """Converte exceções em ErrorPayload (serializável, acionável).

    Regras:
    - ConvergeException: já vem com message/details/hint.
    - Outras exceções (normalmente vindas de providers): encapsular como
      RESOURCE_APPLY_ERROR quando associadas a um recurso, ou
      ENGINE_EXECUTION_ERROR caso contrário, sem expor stack trace.
    """
    if isinstance(exc, ConvergeException):
        details = dict(exc.details or {})
        if resource is not None:
            details.setdefault("resource", resource)
        return ErrorPayload(
            type=error_code_for(exc),
            message=exc.message or exc.__class__.__name__,
            details=details,
            hint=exc.hint,
        )

    if resource is not None:
        return resource_apply_error(
            resource=resource,
            exc_type=exc.__class__.__name__,
            exc_message=str(exc),
        )

    return engine_execution_error(
        exc_type=exc.__class__.__name__,
        exc_message=str(exc),
    )


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def resource_apply_error(
    *,
    resource: str,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    operation: str = "apply",
    hint: str = "Verifique o provider do recurso e o estado do host. Dependentes deste recurso não foram aplicados.",
) -> ErrorPayload:
    return ErrorPayload(
        type=RESOURCE_APPLY_ERROR,
        message=f"Falha do provider ao executar '{operation}' em {resource}",
        details={
            "resource": resource,
            "operation": operation,
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )


def apply_error(*, resource: str, exc: BaseException, operation: str = "apply") -> ApplyError:
    """Encapsula uma exceção arbitrária de provider em ApplyError (mesmos campos de `resource_apply_error`)."""
    payload = resource_apply_error(
        resource=resource,
        exc_type=exc.__class__.__name__,
        exc_message=str(exc),
        operation=operation,
    )
    return ApplyError(message=payload.message, details=payload.details, hint=payload.hint)


def provider_unavailable(
    *,
    resource: str,
    resource_type: str,
    capability: str = "apply",
    hint: str = "Registre um provider para o tipo do recurso antes de executar a run.",
) -> ProviderUnavailable:
    return ProviderUnavailable(
        message=f"Nenhum provider com capability '{capability}' para o tipo '{resource_type}'",
        details={
            "resource": resource,
            "resource_type": resource_type,
            "capability": capability,
        },
        hint=hint,
    )


def engine_execution_error(
    *,
    exc_type: Optional[str] = None,
    exc_message: Optional[str] = None,
    hint: str = "Verifique os eventos do RunContext para diagnosticar a falha. Nenhum fallback é aplicado automaticamente.",
) -> ErrorPayload:
    return ErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message="Falha inesperada durante a convergência",
        details={
            "exc_type": exc_type,
            "exc_message": exc_message,
        },
        hint=hint,
    )
