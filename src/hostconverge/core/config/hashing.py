# src/hostconverge/core/config/hashing.py
"""
Hashing canônico das entradas de uma run.

O hash identifica estruturalmente os parâmetros, os fatos e o documento
de configuração usados em uma convergência, e é gravado no manifest da
run para auditoria (duas runs com o mesmo hash compilam o mesmo catálogo).

Política de hashing (v1):
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - UTF-8 + SHA-256
    - Valores não-JSON (ex.: enums, tuplas) são serializados via `str`

Invariantes:
    - Documentos estruturalmente equivalentes produzem o mesmo hash
    - O valor retornado é hexadecimal de 64 caracteres
"""

import hashlib
import json
from typing import Any, Mapping


def compute_config_hash(config: Mapping[str, Any]) -> str:
    """
    Gera o hash SHA-256 determinístico de um documento de configuração.

    Args:
        config (Mapping[str, Any]): Documento (ou seção) a ser identificado.

    Returns:
        str: Hash hexadecimal.

    Raises:
        TypeError: Se o objeto fornecido não for um mapeamento.
    """
    if not isinstance(config, Mapping):
        raise TypeError(
            f"Config para hashing deve ser mapping, recebido: {type(config).__name__}"
        )

    canonical_json = json.dumps(
        dict(config),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )

    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
