# src/hostconverge/core/config/__init__.py

"""
Camada de configuração do hostconverge.

Este pacote lê e valida as entradas já resolvidas de uma convergência:
parâmetros do módulo, fatos do host e opções do engine.

A configuração no hostconverge é:
    - declarativa
    - determinística
    - identificada por hash (rastreável no manifest)

Componentes:
    - loader     → leitura YAML/JSON, defaults + override local
    - merge      → deep-merge determinístico
    - hashing    → hash canônico das entradas
    - parameters → ParameterSet tipado e validado

Limites explícitos:
    - Não executa lookup hierárquico de defaults
    - Não compila catálogo nem executa a run
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import RunInputs, load_config, load_run_inputs
from .merge import deep_merge
from .parameters import ParameterSet

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "RunInputs",
    "load_config",
    "load_run_inputs",
    "deep_merge",
    "ParameterSet",
]
