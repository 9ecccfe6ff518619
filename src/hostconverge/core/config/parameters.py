# src/hostconverge/core/config/parameters.py
"""
Parameter Set — parâmetros resolvidos do módulo de agente.

Este módulo define o `ParameterSet`, a visão tipada e imutável dos
parâmetros que o compilador de catálogo consome. A resolução hierárquica
de defaults acontece fora do engine; aqui apenas se valida e normaliza
o documento final recebido.

Responsabilidades do módulo:
    - Definir os campos aceitos e seus defaults canônicos
    - Coagir representações textuais comuns (ex.: "30", "true") quando inequívocas
    - Rejeitar valores malformados com `InvalidParameterError`

Decisões arquiteturais:
    - Chaves desconhecidas são rejeitadas (nenhum parâmetro é ignorado em silêncio)
    - `run_style` é aceito como texto livre: a decisão sobre estilos
      não suportados pertence ao Run-Style Selector, não à validação
    - Valores derivados (ex.: intervalo em segundos) não são armazenados

Invariantes:
    - Uma instância de ParameterSet é sempre válida e imutável
    - `run_interval` é inteiro positivo (minutos)
    - `server_port` está em [1, 65535]

Limites explícitos:
    - Não consulta fatos do host
    - Não aplica lookup hierárquico de defaults
    - Não constrói recursos
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

from hostconverge.core.exceptions import InvalidParameterError


_TRUE = {"true", "yes", "1", "on"}
_FALSE = {"false", "no", "0", "off"}


def _fail(name: str, value: Any, expected: str) -> InvalidParameterError:
    return InvalidParameterError(
        message=f"Parâmetro '{name}' inválido: esperado {expected}, recebido {value!r}",
        details={"parameter": name, "value": repr(value), "expected": expected},
        hint=f"Corrija o valor de '{name}' no documento de parâmetros.",
    )


def _as_int(name: str, value: Any, *, minimum: Optional[int] = None, maximum: Optional[int] = None) -> int:
    # bool é subclasse de int e nunca é um número aceitável aqui
    if isinstance(value, bool):
        raise _fail(name, value, "inteiro")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
    else:
        raise _fail(name, value, "inteiro")

    if minimum is not None and number < minimum:
        raise _fail(name, value, f"inteiro >= {minimum}")
    if maximum is not None and number > maximum:
        raise _fail(name, value, f"inteiro <= {maximum}")
    return number


def _as_optional_int(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    return _as_int(name, value, minimum=0)


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise _fail(name, value, "booleano")


def _as_text(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise _fail(name, value, "texto não vazio")
    return value.strip()


@dataclass(frozen=True)
class ParameterSet:
    """
    Parâmetros resolvidos do módulo para uma run.

    Campos:
        - server / server_port: endereço do servidor de catálogo
        - package_name / package_ensure: pacote do agente e versão desejada
        - service_name: serviço de longa duração do agente
        - run_style: "service", "cron" ou outro valor (não suportado)
        - run_interval: intervalo entre runs, em minutos
        - splay: aleatoriza o início da run do agente
        - environment: ambiente de catálogo do agente
        - user / group / uid / gid: identidade do agente no host
        - conf_dir / config_file: diretório e arquivo de configuração
        - agent_command: comando one-shot usado pelo mecanismo cron
    """

    server: str
    server_port: int = 8140
    package_name: str = "puppet"
    package_ensure: str = "present"
    service_name: str = "puppet"
    run_style: str = "service"
    run_interval: int = 30
    splay: bool = False
    environment: str = "production"
    user: str = "puppet"
    group: str = "puppet"
    uid: Optional[int] = None
    gid: Optional[int] = None
    conf_dir: str = "/etc/puppet"
    config_file: str = "/etc/puppet/puppet.conf"
    agent_command: Optional[str] = None

    @property
    def run_interval_seconds(self) -> int:
        return self.run_interval * 60

    @property
    def oneshot_command(self) -> str:
        if self.agent_command:
            return self.agent_command
        return f"/usr/bin/env puppet agent --config {self.config_file} --onetime --no-daemonize"

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ParameterSet":
        """
        Valida e normaliza um documento de parâmetros já resolvido.

        Raises:
            InvalidParameterError: Para chaves desconhecidas, `server` ausente
                ou qualquer valor malformado. Nenhuma instância parcial é criada.
        """
        if not isinstance(data, Mapping):
            raise InvalidParameterError(
                message="Documento de parâmetros deve ser um mapa",
                details={"received": type(data).__name__},
            )

        known = {f.name for f in fields(cls)}
        unknown = sorted(str(k) for k in data if k not in known)
        if unknown:
            raise InvalidParameterError(
                message=f"Parâmetros desconhecidos: {', '.join(unknown)}",
                details={"unknown": unknown, "accepted": sorted(known)},
                hint="Remova as chaves não suportadas do documento de parâmetros.",
            )

        if "server" not in data:
            raise InvalidParameterError(
                message="Parâmetro obrigatório ausente: server",
                details={"parameter": "server"},
            )

        values: Dict[str, Any] = {"server": _as_text("server", data["server"])}

        for name in ("package_name", "package_ensure", "service_name",
                     "environment", "user", "group", "conf_dir", "config_file"):
            if name in data:
                values[name] = _as_text(name, data[name])

        # só o tipo é validado; estilos vazios ou desconhecidos são do Run-Style Selector
        if "run_style" in data:
            if not isinstance(data["run_style"], str):
                raise _fail("run_style", data["run_style"], "texto")
            values["run_style"] = data["run_style"].strip()

        if "server_port" in data:
            values["server_port"] = _as_int("server_port", data["server_port"], minimum=1, maximum=65535)
        if "run_interval" in data:
            values["run_interval"] = _as_int("run_interval", data["run_interval"], minimum=1)
        if "splay" in data:
            values["splay"] = _as_bool("splay", data["splay"])
        if "uid" in data:
            values["uid"] = _as_optional_int("uid", data["uid"])
        if "gid" in data:
            values["gid"] = _as_optional_int("gid", data["gid"])
        if data.get("agent_command") is not None:
            values["agent_command"] = _as_text("agent_command", data["agent_command"])

        return cls(**values)
