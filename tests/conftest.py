# tests/conftest.py
"""
Fixtures compartilhados para testes do hostconverge.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações YAML mínimas (defaults + override local)
- fatos de host determinísticos (RedHat e Debian)
- parâmetros do módulo de agente já validados
- contexto de execução controlado (RunContext)
- host em memória com providers que registram chamadas

Decisões arquiteturais:
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas
    - Providers são duck-typed (sem herança)
    - Nenhuma fixture toca o SO real

Invariantes:
    - Dados retornados são determinísticos e isolados
    - Nenhuma fixture executa uma run
    - Nenhuma fixture realiza I/O

Limites explícitos:
    - Não substituir testes de integração com providers reais
"""

import pytest
from datetime import datetime, timezone


# =====================================================
# Config Loader fixtures
# =====================================================

@pytest.fixture
def project_like_config_defaults_yaml() -> str:
    """
    YAML de defaults semelhante ao `hostconverge.defaults.yaml` de um host.

    Decisões arquiteturais:
        - Configuração fornecida como string (o teste decide onde gravar)
        - Defaults representam a base completa e estável

    Returns:
        str: Conteúdo YAML com as seções parameters, facts e engine.
    """
    return """\
parameters:
  server: puppet.example.com
  run_style: service
  run_interval: 30
  splay: false
facts:
  kernel: Linux
  osfamily: RedHat
  fqdn: agent1.example.com
engine:
  noop: false
  max_workers: 1
"""


@pytest.fixture
def project_like_config_local_yaml() -> str:
    """
    YAML de override local: troca o run style para cron e liga o noop.

    Returns:
        str: Conteúdo YAML representando apenas overrides.
    """
    return """\
parameters:
  run_style: cron
engine:
  noop: true
"""


# =====================================================
# Host fixtures (fatos + parâmetros)
# =====================================================

@pytest.fixture
def redhat_facts():
    """Fatos de um host Linux da família RedHat."""
    from hostconverge.core.catalog.facts import FactSet

    return FactSet(
        {
            "kernel": "Linux",
            "os_family": "RedHat",
            "fqdn": "agent1.example.com",
            "hostname": "agent1",
        }
    )


@pytest.fixture
def debian_facts():
    """Fatos de um host Linux da família Debian."""
    from hostconverge.core.catalog.facts import FactSet

    return FactSet(
        {
            "kernel": "Linux",
            "osfamily": "Debian",
            "fqdn": "agent2.example.com",
            "hostname": "agent2",
        }
    )


@pytest.fixture
def service_parameters():
    """
    Parâmetros mínimos do módulo de agente, modo service.

    Invariantes:
        - `server` é o único parâmetro sem default
        - Valores restantes vêm dos defaults de ParameterSet
    """
    from hostconverge.core.config.parameters import ParameterSet

    return ParameterSet.from_mapping({"server": "puppet.example.com"})


@pytest.fixture
def cron_parameters():
    """Parâmetros em modo cron com intervalo de 30 minutos."""
    from hostconverge.core.config.parameters import ParameterSet

    return ParameterSet.from_mapping(
        {"server": "puppet.example.com", "run_style": "cron", "run_interval": 30}
    )


# =====================================================
# Engine fixtures (RunContext + providers)
# =====================================================

@pytest.fixture
def dummy_engine_config() -> dict:
    """Configuração do engine já resolvida (execução sequencial, sem noop)."""
    return {"noop": False, "max_workers": 1}


@pytest.fixture
def dummy_ctx(dummy_engine_config):
    """
    RunContext determinístico para testes.

    Decisões arquiteturais:
        - `run_id` e `created_at` fixos para garantir determinismo
        - Sem manifest: testes de rastreabilidade criam o seu

    Returns:
        RunContext: Contexto isolado e previsível.
    """
    from hostconverge.core.run_context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config=dummy_engine_config,
        meta={"source": "pytest"},
    )


@pytest.fixture
def memory_host():
    """Host em memória vazio (nenhum recurso convergido)."""
    from tests.fixtures.providers.memory import InMemoryHost

    return InMemoryHost()


@pytest.fixture
def memory_providers(memory_host):
    """
    Fixture factory de providers em memória.

    Retorna uma função que monta o mapeamento tipo → provider sobre o
    `memory_host` compartilhado, aceitando falhas simuladas:

        providers = memory_providers(fail_apply={"Package[puppet]"})

    Returns:
        Callable[..., Dict[str, MemoryProvider]]
    """
    from tests.fixtures.providers.memory import memory_providers as build

    def _factory(types=None, **kwargs):
        if types is None:
            return build(memory_host, **kwargs)
        return build(memory_host, types=types, **kwargs)

    return _factory


@pytest.fixture
def make_resource():
    """Fixture factory para recursos simples (`notify[<title>]` por padrão)."""
    from hostconverge.core.catalog.types import Resource

    def _make(title, *, type="notify", ensure="present", **kwargs):
        return Resource(type, title, ensure=ensure, **kwargs)

    return _make
