# src/hostconverge/core/catalog/facts.py
"""
Fact Set — fatos imutáveis do host para uma run.

Os fatos são produzidos por um coletor externo (fora do engine) e lidos
pelo compilador para escolher ramos dependentes de plataforma e para
derivar a semente do jitter.

Invariantes:
    - Chaves e valores são sempre strings
    - O conjunto é somente-leitura durante toda a run
    - Fatos ausentes são lidos como `None` (nunca como string vazia implícita)
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional


class FactSet(Mapping[str, str]):
    """Mapeamento imutável `nome do fato -> valor`."""

    __slots__ = ("_facts",)

    def __init__(self, facts: Optional[Mapping[str, Any]] = None):
        data: Dict[str, str] = {}
        for key, value in (facts or {}).items():
            if not isinstance(key, str) or not key.strip():
                raise ValueError("fact name must be a non-empty string")
            if value is None:
                continue
            data[key] = value if isinstance(value, str) else str(value)
        self._facts = MappingProxyType(data)

    def __getitem__(self, key: str) -> str:
        return self._facts[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._facts)

    def __len__(self) -> int:
        return len(self._facts)

    def __repr__(self) -> str:
        return f"FactSet({dict(self._facts)!r})"

    @property
    def kernel(self) -> Optional[str]:
        return self._facts.get("kernel")

    @property
    def os_family(self) -> Optional[str]:
        return self._facts.get("os_family") or self._facts.get("osfamily")

    @property
    def host_identity(self) -> Optional[str]:
        """Identidade estável do host (fqdn, com fallback para hostname)."""
        return self._facts.get("fqdn") or self._facts.get("hostname")

    def to_dict(self) -> Dict[str, str]:
        return dict(self._facts)
