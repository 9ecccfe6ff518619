# src/hostconverge/core/config/loader.py
"""
Loader canônico das entradas de uma run do hostconverge.

Este módulo lê o documento de entrada de uma convergência, já resolvido
por uma camada externa de lookup, e o transforma nas estruturas tipadas
consumidas pelo engine.

O documento é resolvido a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional)

Formato do documento (v1):

    parameters:            # → ParameterSet.from_mapping
      server: master.example.com
      run_style: cron
    facts:                 # → FactSet
      kernel: Linux
      fqdn: agent1.example.com
    engine:                # → RunContext.config
      noop: false
      max_workers: 1

Responsabilidades do módulo:
    - Carregar arquivos em YAML ou JSON
    - Validar o tipo raiz e o tipo das seções conhecidas
    - Resolver defaults + override via deep-merge determinístico
    - Calcular o hash canônico do documento efetivo

Invariantes:
    - O arquivo de defaults é obrigatório
    - Overrides nunca mutam os defaults
    - A mesma entrada sempre produz as mesmas estruturas tipadas

Limites explícitos:
    - Não executa lookup hierárquico de parâmetros
    - Não coleta fatos do host
    - Não compila catálogo nem executa a run
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # PyYAML

from hostconverge.core.catalog.facts import FactSet

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .merge import deep_merge
from .parameters import ParameterSet


SECTIONS = ("parameters", "facts", "engine")


def _load_file(path: Path) -> Dict[str, Any]:
    """
    Carrega um arquivo de configuração e valida o tipo raiz.

    Arquivos vazios são interpretados como dicionários vazios.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve o documento efetivo (defaults + override local).

    O arquivo local é opcional: quando ausente no disco, é ignorado.

    Args:
        defaults_path (str): Caminho para o documento base.
        local_path (Optional[str]): Caminho opcional para overrides locais.

    Returns:
        Dict[str, Any]: Documento efetivo.

    Raises:
        DefaultsNotFoundError, UnsupportedConfigFormatError,
        InvalidConfigRootTypeError, ConfigTypeConflictError
    """
    defaults = _load_file(Path(defaults_path))

    effective = defaults

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(defaults, _load_file(local_file))

    for section in SECTIONS:
        value = effective.get(section)
        if value is not None and not isinstance(value, dict):
            raise InvalidConfigRootTypeError(
                f"Seção '{section}' deve ser dict, recebido: {type(value).__name__}"
            )

    return effective


@dataclass(frozen=True)
class RunInputs:
    """Entradas tipadas de uma run, prontas para `converge`."""

    parameters: ParameterSet
    facts: FactSet
    engine: Dict[str, Any]
    config_hash: str


def load_run_inputs(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> RunInputs:
    """
    Carrega o documento efetivo e constrói ParameterSet, FactSet e a config do engine.

    Raises:
        InvalidParameterError: Se a seção `parameters` for malformada.
        ConfigError: Para falhas estruturais do documento.
    """
    effective = load_config(defaults_path=defaults_path, local_path=local_path)

    return RunInputs(
        parameters=ParameterSet.from_mapping(effective.get("parameters") or {}),
        facts=FactSet(effective.get("facts") or {}),
        engine=dict(effective.get("engine") or {}),
        config_hash=compute_config_hash(effective),
    )
