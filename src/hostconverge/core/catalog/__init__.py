"""
# Catalog Core — hostconverge

Estruturas fundamentais do grafo de recursos de uma run.

## Componentes

- **types**
  - `ResourceRef`: identidade `(type, title)`
  - `Resource`: estado desejado + arestas de ordenação e refresh
- **registry**
  - `Catalog`: registro de identidade com unicidade e declaração idempotente
- **facts**
  - `FactSet`: fatos imutáveis do host

## Invariantes

- `(type, title)` é único por catálogo
- Ordem de declaração é preservada e determinística
- Fatos são somente-leitura durante a run
"""

from .facts import FactSet
from .registry import Catalog
from .types import Resource, ResourceRef, to_ref

__all__ = ["FactSet", "Catalog", "Resource", "ResourceRef", "to_ref"]
