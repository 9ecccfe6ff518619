"""
Compilador de catálogo do hostconverge.

Componentes:
    - compiler  → composição dos ramos e registro no catálogo
    - branches  → ramos puros dependentes de fatos e parâmetros
    - run_style → seleção do mecanismo de execução do agente
    - jitter    → minutos de execução determinísticos por host
"""

from .compiler import CatalogCompiler, CompiledCatalog, compile_catalog
from .jitter import JitterWindow, jitter_minutes
from .run_style import RunStyle, RunStyleSelection, select_run_style

__all__ = [
    "CatalogCompiler",
    "CompiledCatalog",
    "compile_catalog",
    "JitterWindow",
    "jitter_minutes",
    "RunStyle",
    "RunStyleSelection",
    "select_run_style",
]
