# src/hostconverge/core/compiler/jitter.py
"""
Jitter determinístico por host.

Escolhe os minutos de execução periódica do agente de forma espalhada
entre hosts, mas estável para o mesmo host: recompilar o catálogo nunca
move o agendamento.

Política (v1):
    - draw(seed, salt) = primeiros 8 bytes de SHA-256("<salt>:<seed>"), big-endian
    - first  = draw(seed, 0) mod N
    - second = (draw(seed, 1) mod N) + 30

Decisões arquiteturais:
    - Nenhum gerador aleatório global é usado
    - As duas sorteações são independentes (salts distintos)
    - Não é fonte de aleatoriedade para segurança

Invariantes:
    - Mesmo seed + mesmo N → mesmo par, sempre
    - first e second_draw pertencem a [0, N)
    - second - second_draw == 30
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import List

from hostconverge.core.exceptions import InvalidParameterError


SECOND_RUN_OFFSET = 30


def draw(seed: str, salt: int) -> int:
    digest = hashlib.sha256(f"{salt}:{seed}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


@dataclass(frozen=True)
class JitterWindow:
    """Par de minutos escolhido para um host."""

    first: int
    second: int
    second_draw: int

    @property
    def minutes(self) -> List[int]:
        return [self.first, self.second]


def jitter_minutes(seed: str, interval: int) -> JitterWindow:
    """
    Calcula os dois minutos de execução para `seed` dentro do intervalo `interval`.

    Raises:
        InvalidParameterError: Se o seed for vazio ou o intervalo não for positivo.
    """
    if not isinstance(seed, str) or not seed.strip():
        raise InvalidParameterError(
            message="Jitter requer uma identidade de host não vazia",
            details={"seed": repr(seed)},
            hint="Forneça o fato 'fqdn' (ou 'hostname') para o host.",
        )
    if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
        raise InvalidParameterError(
            message=f"Intervalo de jitter inválido: {interval!r}",
            details={"interval": repr(interval)},
        )

    first = draw(seed, 0) % interval
    second_draw = draw(seed, 1) % interval
    return JitterWindow(
        first=first,
        second=second_draw + SECOND_RUN_OFFSET,
        second_draw=second_draw,
    )
