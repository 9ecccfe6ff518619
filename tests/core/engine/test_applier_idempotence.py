# tests/core/engine/test_applier_idempotence.py
"""
Testes de idempotência do Convergence Applier.

Este módulo valida o contrato central da convergência: aplicar um
catálogo sobre um host já convergido não produz efeito observável.

Os testes asseguram que:
- a primeira run sobre um host vazio aplica todos os recursos, em ordem
- a segunda run não chama `apply` nem `refresh` e reporta tudo `unchanged`
- a checagem de sincronismo própria do provider (`insync`) é respeitada

Invariantes:
    - `apply` nunca é chamado para recurso já em sincronismo
    - Todo recurso do plano aparece exatamente uma vez no report

Limites explícitos:
    - Não valida falhas (ver test_applier_failure_propagation)
"""

import pytest

try:
    from hostconverge.core.compiler.compiler import compile_catalog
    from hostconverge.core.engine.applier import Applier
    from hostconverge.core.engine.planner import plan_execution
    from hostconverge.core.engine.report import RefreshStatus, ResourceOutcome, RunStatus
    from hostconverge.core.run_context import RunContext
except Exception as e:  # noqa: BLE001
    compile_catalog = None
    Applier = None
    plan_execution = None
    RefreshStatus = None
    ResourceOutcome = None
    RunStatus = None
    RunContext = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """
    Garante que applier, planner e compilador estejam disponíveis.

    Invariantes:
        - Não tenta fallback nem implementação alternativa
    """
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing applier modules. Implement:\n"
            "- src/hostconverge/core/engine/applier.py (Applier)\n"
            "- src/hostconverge/core/engine/report.py (RunReport)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _agent_plan(parameters, facts):
    return plan_execution(compile_catalog(parameters, facts))


def test_first_run_applies_everything_in_plan_order(service_parameters, redhat_facts, memory_host, memory_providers):
    """
    Verifica a primeira run sobre um host vazio.

    Invariantes:
        - Todos os recursos ficam `changed`
        - A ordem das chamadas `apply` é a ordem do plano
        - O serviço recebe exatamente um refresh, com todos os
          notificadores que mudaram como origem
    """
    _require_imports()
    plan = _agent_plan(service_parameters, redhat_facts)
    ctx = RunContext.create()

    report = Applier(plan=plan, providers=memory_providers(), ctx=ctx).apply()

    assert report.status is RunStatus.SUCCESS
    assert all(e.outcome is ResourceOutcome.CHANGED for e in report.entries)
    assert [str(e.ref) for e in report.entries] == [str(r.ref) for r in plan.order]
    assert memory_host.calls_of("apply") == [str(r.ref) for r in plan.order]

    assert memory_host.calls_of("refresh") == ["Service[puppet]"]
    (event,) = report.refreshes
    assert event.status is RefreshStatus.REFRESHED
    assert [str(s) for s in event.sources][:2] == [
        "Package[puppet]",
        "Ini_setting[/etc/sysconfig/puppet/PUPPET_SERVER]",
    ]
    assert "File[/etc/puppet/puppet.conf]" in [str(s) for s in event.sources]


def test_second_run_is_a_noop_on_the_host(service_parameters, redhat_facts, memory_host, memory_providers):
    """
    Verifica a idempotência entre runs completas.

    Decisões arquiteturais:
        - O mesmo host em memória é reutilizado entre as runs
        - Apenas leituras acontecem na segunda run
    """
    _require_imports()
    plan = _agent_plan(service_parameters, redhat_facts)
    providers = memory_providers()

    Applier(plan=plan, providers=providers, ctx=RunContext.create()).apply()
    memory_host.calls.clear()

    report = Applier(plan=plan, providers=providers, ctx=RunContext.create()).apply()

    assert report.status is RunStatus.SUCCESS
    assert report.counts()["unchanged"] == len(plan)
    assert memory_host.calls_of("apply") == []
    assert memory_host.calls_of("refresh") == []
    assert len(memory_host.calls_of("read")) == len(plan)
    assert report.refreshes == ()


def test_preconverged_host_reports_unchanged(cron_parameters, redhat_facts, memory_host, memory_providers):
    _require_imports()
    catalog = compile_catalog(cron_parameters, redhat_facts)
    memory_host.converge_all(catalog)

    report = Applier(plan=plan_execution(catalog), providers=memory_providers(), ctx=RunContext.create()).apply()

    assert report.with_outcome(ResourceOutcome.CHANGED) == []
    assert memory_host.calls_of("apply") == []


def test_partial_drift_only_touches_drifted_resource(service_parameters, redhat_facts, memory_host, memory_providers):
    """
    Verifica que apenas o recurso divergente é aplicado.

    O setting `runinterval` foi alterado à mão no host; a run corrige só
    ele e entrega refresh ao serviço.
    """
    _require_imports()
    catalog = compile_catalog(service_parameters, redhat_facts)
    memory_host.converge_all(catalog)
    memory_host.state["Ini_setting[puppet.conf/agent/runinterval]"]["value"] = "60"

    report = Applier(plan=plan_execution(catalog), providers=memory_providers(), ctx=RunContext.create()).apply()

    drifted = "Ini_setting[puppet.conf/agent/runinterval]"
    assert [str(r) for r in report.with_outcome(ResourceOutcome.CHANGED)] == [drifted]
    assert report.entry(drifted).changes == {"value": {"from": "60", "to": "1800"}}
    assert memory_host.calls_of("apply") == [drifted]
    assert memory_host.calls_of("refresh") == ["Service[puppet]"]


def test_provider_insync_overrides_attribute_comparison(make_resource, memory_host):
    _require_imports()

    class LenientProvider:
        def read(self, resource):
            return {"ensure": "absent"}

        def apply(self, resource):
            memory_host.calls.append(("apply", str(resource.ref)))

        def insync(self, resource, current):
            return True

    plan = plan_execution([make_resource("a")])
    report = Applier(plan=plan, providers={"notify": LenientProvider()}, ctx=RunContext.create()).apply()

    assert report.outcome_of("Notify[a]") is ResourceOutcome.UNCHANGED
    assert memory_host.calls_of("apply") == []
