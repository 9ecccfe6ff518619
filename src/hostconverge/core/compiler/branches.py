# src/hostconverge/core/compiler/branches.py
"""
Ramos puros do compilador de catálogo.

Cada ramo é uma função `(parameters, facts, selection) -> list[Resource]`
sem efeitos colaterais. O compilador compõe os ramos por concatenação,
na ordem de declaração, e só então registra os recursos no catálogo.

Ramos:
    - identity_resources   → grupo, usuário e diretório de configuração
                             (declarados de forma idempotente)
    - agent_resources      → pacote do agente e arquivo de configuração
    - platform_defaults    → ajustes do arquivo de defaults do SO (autostart)
    - config_settings      → cauda fixa de settings do arquivo de configuração

Invariantes:
    - Ramos nunca consultam nem mutam o catálogo
    - Ramos sem correspondência retornam lista vazia (nunca None)
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from hostconverge.core.catalog.facts import FactSet
from hostconverge.core.catalog.types import Resource, ResourceRef
from hostconverge.core.config.parameters import ParameterSet

from .naming import config_dir_ref, config_file_ref, group_ref, package_ref, service_ref
from .run_style import RunStyleSelection


# Arquivo de defaults do serviço por família de SO
DEFAULTS_FILES = {
    "redhat": "/etc/sysconfig/puppet",
    "debian": "/etc/default/puppet",
}


def _refresh_service(selection: RunStyleSelection, parameters: ParameterSet) -> List[ResourceRef]:
    return [service_ref(parameters)] if selection.autostart else []


def identity_resources(parameters: ParameterSet, facts: FactSet, selection: RunStyleSelection) -> List[Resource]:
    group_attrs: Dict[str, Any] = {}
    if parameters.gid is not None:
        group_attrs["gid"] = parameters.gid

    user_attrs: Dict[str, Any] = {"gid": parameters.group}
    if parameters.uid is not None:
        user_attrs["uid"] = parameters.uid

    return [
        Resource("group", parameters.group, ensure="present", attributes=group_attrs),
        Resource(
            "user",
            parameters.user,
            ensure="present",
            attributes=user_attrs,
            requires=[group_ref(parameters)],
        ),
        Resource(
            "file",
            parameters.conf_dir,
            ensure="directory",
            requires=[package_ref(parameters)],
        ),
    ]


def agent_resources(parameters: ParameterSet, facts: FactSet, selection: RunStyleSelection) -> List[Resource]:
    package = package_ref(parameters)
    return [
        Resource("package", parameters.package_name, ensure=parameters.package_ensure),
        Resource(
            "file",
            parameters.config_file,
            ensure="file",
            attributes={"owner": parameters.user, "group": parameters.group},
            requires=[config_dir_ref(parameters), package],
            notifies=_refresh_service(selection, parameters),
        ),
    ]


def _defaults_setting(path: str, setting: str, value: Any, parameters: ParameterSet,
                      notify: List[ResourceRef]) -> Resource:
    return Resource(
        "ini_setting",
        f"{path}/{setting}",
        ensure="present",
        attributes={"path": path, "section": "", "setting": setting, "value": value},
        requires=[package_ref(parameters)],
        notifies=notify,
    )


def platform_defaults(parameters: ParameterSet, facts: FactSet, selection: RunStyleSelection) -> List[Resource]:
    """Ajustes do arquivo de defaults do serviço, só em Linux com autostart."""
    if facts.kernel != "Linux" or not selection.autostart:
        return []

    family: Optional[str] = (facts.os_family or "").strip().lower()
    notify = _refresh_service(selection, parameters)

    if family == "redhat":
        path = DEFAULTS_FILES["redhat"]
        return [
            _defaults_setting(path, "PUPPET_SERVER", parameters.server, parameters, notify),
            _defaults_setting(path, "PUPPET_PORT", str(parameters.server_port), parameters, notify),
        ]

    if family == "debian":
        return [_defaults_setting(DEFAULTS_FILES["debian"], "START", "yes", parameters, notify)]

    return []


def config_settings(
    parameters: ParameterSet,
    facts: FactSet,
    selection: RunStyleSelection,
    *,
    run_interval_seconds: int,
) -> List[Resource]:
    """Cauda fixa de settings do arquivo de configuração do agente."""
    settings = [
        ("agent", "server", parameters.server),
        ("agent", "environment", parameters.environment),
        ("agent", "runinterval", str(run_interval_seconds)),
        ("agent", "splay", "true" if parameters.splay else "false"),
        ("main", "masterport", str(parameters.server_port)),
    ]
    config_file = config_file_ref(parameters)
    notify = _refresh_service(selection, parameters)

    return [
        Resource(
            "ini_setting",
            f"puppet.conf/{section}/{setting}",
            ensure="present",
            attributes={
                "path": parameters.config_file,
                "section": section,
                "setting": setting,
                "value": value,
            },
            requires=[config_file],
            notifies=notify,
        )
        for section, setting, value in settings
    ]
