# src/hostconverge/core/compiler/naming.py
"""Identidades dos recursos emitidos pelo módulo de agente."""

from __future__ import annotations

from hostconverge.core.catalog.types import ResourceRef
from hostconverge.core.config.parameters import ParameterSet


def package_ref(parameters: ParameterSet) -> ResourceRef:
    return ResourceRef("package", parameters.package_name)


def service_ref(parameters: ParameterSet) -> ResourceRef:
    return ResourceRef("service", parameters.service_name)


def config_dir_ref(parameters: ParameterSet) -> ResourceRef:
    return ResourceRef("file", parameters.conf_dir)


def config_file_ref(parameters: ParameterSet) -> ResourceRef:
    return ResourceRef("file", parameters.config_file)


def user_ref(parameters: ParameterSet) -> ResourceRef:
    return ResourceRef("user", parameters.user)


def group_ref(parameters: ParameterSet) -> ResourceRef:
    return ResourceRef("group", parameters.group)
