# src/hostconverge/core/config/merge.py
"""
Deep-merge de documentos de configuração do hostconverge.

Usado para sobrepor um documento local (ex.: `host.local.yaml`) a um
documento base de defaults já resolvidos para o host.

Política de merge (v1):
    - dict → merge recursivo por chave
    - list → sobrescrita total (ex.: minutos de cron, listas de fatos)
    - escalar → sobrescrita direta
    - conflito de tipos → erro estrutural explícito, com o caminho da chave

Invariantes:
    - Nenhum input é mutado
    - A mesma entrada sempre produz a mesma saída

Limites explícitos:
    - Não valida parâmetros do módulo (isso é responsabilidade de `ParameterSet`)
    - Não realiza coerção de tipos
"""

from copy import deepcopy
from typing import Any, Dict, Tuple

from .errors import ConfigTypeConflictError


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Combina `base` e `override` em um novo dicionário, com prioridade do override.

    `None` no override é tratado como valor explícito (ex.: `uid: null`
    desliga um uid definido nos defaults) e nunca gera conflito de tipo.

    Args:
        base (Dict[str, Any]): Documento base (defaults).
        override (Dict[str, Any]): Overrides explícitos.

    Returns:
        Dict[str, Any]: Novo documento resultante.

    Raises:
        ConfigTypeConflictError: Se a mesma chave possuir tipos incompatíveis.
    """
    return _merge(base, override, ())


def _merge(base: Dict[str, Any], override: Dict[str, Any], path: Tuple[str, ...]) -> Dict[str, Any]:
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts em '{_dotted(path)}', recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)

    for key, override_value in override.items():
        key_path = path + (str(key),)
        if key not in result:
            result[key] = deepcopy(override_value)
            continue

        base_value = result[key]

        if isinstance(base_value, dict) and isinstance(override_value, dict):
            result[key] = _merge(base_value, override_value, key_path)
            continue

        if isinstance(override_value, list) or override_value is None or base_value is None:
            result[key] = deepcopy(override_value)
            continue

        if type(base_value) is not type(override_value):
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{_dotted(key_path)}': "
                f"{type(base_value).__name__} vs {type(override_value).__name__}"
            )

        result[key] = deepcopy(override_value)

    return result


def _dotted(path: Tuple[str, ...]) -> str:
    return ".".join(path) or "<root>"
