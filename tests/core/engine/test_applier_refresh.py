# tests/core/engine/test_applier_refresh.py
"""
Testes de entrega de refresh (notifies/subscribes).

Os testes asseguram que:
- um alvo notificado por vários recursos que mudaram recebe um único refresh
- recursos em sincronismo não disparam refresh
- o refresh só acontece depois do passo de aplicação do alvo e do notificador
- alvos que falharam ou foram pulados não recebem refresh
- falha no refresh marca o alvo como `failed` e pula seus dependentes
- provider sem capability de refresh falha o alvo
- dependentes de um alvo só rodam depois que o refresh do alvo foi resolvido

Invariantes:
    - `refresh` é chamado no máximo uma vez por alvo por run
"""

import pytest

try:
    from hostconverge.core.engine.applier import Applier
    from hostconverge.core.engine.planner import plan_execution
    from hostconverge.core.engine.report import RefreshStatus, ResourceOutcome, RunStatus
    from hostconverge.core.errors import PROVIDER_UNAVAILABLE, RESOURCE_APPLY_ERROR
except Exception as e:  # noqa: BLE001
    Applier = None
    plan_execution = None
    RefreshStatus = None
    ResourceOutcome = None
    RunStatus = None
    PROVIDER_UNAVAILABLE = None
    RESOURCE_APPLY_ERROR = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing applier modules. Implement:\n"
            "- src/hostconverge/core/engine/applier.py (Applier)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def _apply(resources, providers, ctx):
    return Applier(plan=plan_execution(resources), providers=providers, ctx=ctx).apply()


def test_two_notifiers_one_refresh(make_resource, memory_host, memory_providers, dummy_ctx):
    """
    Verifica a deduplicação de notificações.

    `conf` e `pkg` mudam e notificam `svc`; o provider recebe um único
    refresh e o evento lista as duas origens.
    """
    _require_imports()
    resources = [
        make_resource("pkg", notifies=["Notify[svc]"]),
        make_resource("conf", requires=["Notify[pkg]"], notifies=["Notify[svc]"]),
        make_resource("svc", requires=["Notify[conf]"], subscribes=["Notify[pkg]"]),
    ]
    report = _apply(resources, memory_providers(types=("notify",)), dummy_ctx)

    assert memory_host.calls_of("refresh") == ["Notify[svc]"]
    (event,) = report.refreshes_for("Notify[svc]")
    assert event.status is RefreshStatus.REFRESHED
    assert [str(s) for s in event.sources] == ["Notify[pkg]", "Notify[conf]"]


def test_refresh_comes_after_target_apply(make_resource, memory_host, memory_providers, dummy_ctx):
    _require_imports()
    resources = [
        make_resource("conf", notifies=["Notify[svc]"]),
        make_resource("svc", requires=["Notify[conf]"]),
    ]
    _apply(resources, memory_providers(types=("notify",)), dummy_ctx)

    assert [c for c in memory_host.calls if c[0] != "read"] == [
        ("apply", "Notify[conf]"),
        ("apply", "Notify[svc]"),
        ("refresh", "Notify[svc]"),
    ]


def test_notify_without_requires_still_waits_for_both(make_resource, memory_host, memory_providers, dummy_ctx):
    """
    Verifica a notificação sem aresta de ordenação.

    Decisões arquiteturais:
        - O refresh independe de existir `requires` entre notificador e alvo
        - A entrega ocorre ao fim do batch em que ambos já foram aplicados
    """
    _require_imports()
    resources = [
        make_resource("svc"),
        make_resource("conf", notifies=["Notify[svc]"]),
    ]
    _apply(resources, memory_providers(types=("notify",)), dummy_ctx)

    assert memory_host.calls[-1] == ("refresh", "Notify[svc]")
    assert memory_host.calls_of("apply") == ["Notify[svc]", "Notify[conf]"]


def test_in_sync_notifier_does_not_refresh(make_resource, memory_host, memory_providers, dummy_ctx):
    _require_imports()
    memory_host.state["Notify[conf]"] = {"ensure": "present"}
    resources = [
        make_resource("conf", notifies=["Notify[svc]"]),
        make_resource("svc", requires=["Notify[conf]"]),
    ]
    report = _apply(resources, memory_providers(types=("notify",)), dummy_ctx)

    assert report.refreshes == ()
    assert memory_host.calls_of("refresh") == []


def test_late_notifier_joins_the_single_refresh(make_resource, memory_host, memory_providers, dummy_ctx):
    """
    Verifica a união de notificadores em batches diferentes.

    `early` e `svc` estão no primeiro batch, `late` no segundo. O refresh
    espera todos os notificadores potenciais e é entregue uma única vez,
    com as duas origens.
    """
    _require_imports()
    resources = [
        make_resource("svc"),
        make_resource("early", notifies=["Notify[svc]"]),
        make_resource("late", requires=["Notify[early]"], notifies=["Notify[svc]"]),
    ]
    report = _apply(resources, memory_providers(types=("notify",)), dummy_ctx)

    assert memory_host.calls_of("refresh") == ["Notify[svc]"]
    (event,) = report.refreshes_for("Notify[svc]")
    assert event.status is RefreshStatus.REFRESHED
    assert [str(s) for s in event.sources] == ["Notify[early]", "Notify[late]"]
    assert memory_host.calls[-1] == ("refresh", "Notify[svc]")
    assert "Notify[svc]" not in dummy_ctx.warnings


def test_unchanged_late_notifier_still_allows_delivery(make_resource, memory_host, memory_providers, dummy_ctx):
    _require_imports()
    memory_host.state["Notify[late]"] = {"ensure": "present"}
    resources = [
        make_resource("svc"),
        make_resource("early", notifies=["Notify[svc]"]),
        make_resource("late", requires=["Notify[early]"], notifies=["Notify[svc]"]),
    ]
    report = _apply(resources, memory_providers(types=("notify",)), dummy_ctx)

    (event,) = report.refreshes_for("Notify[svc]")
    assert [str(s) for s in event.sources] == ["Notify[early]"]


def test_target_dependants_wait_for_late_notifier(make_resource, memory_host, memory_providers, dummy_ctx):
    """
    Verifica que dependentes de um alvo esperam o refresh do alvo.

    `app` requer `a`; `n` notifica `a` mas só roda depois de `z`. O
    refresh de `a` falha ao ser entregue, e `app` ainda não pode ter
    sido aplicado: ele é pulado.

    Invariantes:
        - O desfecho de `a` é definitivo antes de `app` ser avaliado
        - `app` nunca chega ao provider
    """
    _require_imports()
    resources = [
        make_resource("a"),
        make_resource("z"),
        make_resource("app", requires=["Notify[a]"]),
        make_resource("n", requires=["Notify[z]"], notifies=["Notify[a]"]),
    ]
    providers = memory_providers(types=("notify",), fail_refresh={"Notify[a]"})
    report = _apply(resources, providers, dummy_ctx)

    assert report.outcome_of("Notify[a]") is ResourceOutcome.FAILED
    assert report.outcome_of("Notify[app]") is ResourceOutcome.SKIPPED
    assert "Notify[app]" not in {ref for _, ref in memory_host.calls}


def test_target_dependants_run_after_successful_refresh(make_resource, memory_host, memory_providers, dummy_ctx):
    _require_imports()
    resources = [
        make_resource("a"),
        make_resource("z"),
        make_resource("app", requires=["Notify[a]"]),
        make_resource("n", requires=["Notify[z]"], notifies=["Notify[a]"]),
    ]
    report = _apply(resources, memory_providers(types=("notify",)), dummy_ctx)

    assert report.outcome_of("Notify[app]") is ResourceOutcome.CHANGED
    calls = [c for c in memory_host.calls if c[0] != "read"]
    assert calls.index(("refresh", "Notify[a]")) < calls.index(("apply", "Notify[app]"))


def test_failed_target_is_not_refreshed(make_resource, memory_host, memory_providers, dummy_ctx):
    _require_imports()
    resources = [
        make_resource("conf", notifies=["Notify[svc]"]),
        make_resource("svc", requires=["Notify[conf]"]),
    ]
    providers = memory_providers(types=("notify",), fail_apply={"Notify[svc]"})
    report = _apply(resources, providers, dummy_ctx)

    assert memory_host.calls_of("refresh") == []
    (event,) = report.refreshes_for("Notify[svc]")
    assert event.status is RefreshStatus.DROPPED
    assert report.outcome_of("Notify[svc]") is ResourceOutcome.FAILED


def test_skipped_target_is_not_refreshed(make_resource, memory_host, memory_providers, dummy_ctx):
    _require_imports()
    resources = [
        make_resource("base"),
        make_resource("conf", notifies=["Notify[svc]"]),
        make_resource("svc", requires=["Notify[base]", "Notify[conf]"]),
    ]
    providers = memory_providers(types=("notify",), fail_apply={"Notify[base]"})
    report = _apply(resources, providers, dummy_ctx)

    assert report.outcome_of("Notify[svc]") is ResourceOutcome.SKIPPED
    assert memory_host.calls_of("refresh") == []
    assert [e.status for e in report.refreshes] == [RefreshStatus.DROPPED]


def test_refresh_failure_marks_target_failed(make_resource, memory_host, memory_providers, dummy_ctx):
    """
    Verifica a falha do próprio refresh.

    Invariantes:
        - O alvo passa a `failed` com erro de operação `refresh`
        - Dependentes do alvo (batches seguintes) são pulados
        - Status global `partial_failure`
    """
    _require_imports()
    resources = [
        make_resource("conf", notifies=["Notify[svc]"]),
        make_resource("svc", requires=["Notify[conf]"]),
        make_resource("check", requires=["Notify[svc]"]),
    ]
    providers = memory_providers(types=("notify",), fail_refresh={"Notify[svc]"})
    report = _apply(resources, providers, dummy_ctx)

    entry = report.entry("Notify[svc]")
    assert entry.outcome is ResourceOutcome.FAILED
    assert entry.error["type"] == RESOURCE_APPLY_ERROR
    assert entry.error["details"]["operation"] == "refresh"
    assert report.outcome_of("Notify[check]") is ResourceOutcome.SKIPPED
    assert report.refreshes_for("Notify[svc]")[0].status is RefreshStatus.FAILED
    assert report.status is RunStatus.PARTIAL_FAILURE


def test_provider_without_refresh_fails_target(make_resource, memory_host, dummy_ctx):
    _require_imports()
    from tests.fixtures.providers.memory import ReadOnlyProvider

    resources = [
        make_resource("conf", notifies=["Notify[svc]"]),
        make_resource("svc", requires=["Notify[conf]"]),
    ]
    report = _apply(resources, {"notify": ReadOnlyProvider(memory_host)}, dummy_ctx)

    entry = report.entry("Notify[svc]")
    assert entry.outcome is ResourceOutcome.FAILED
    assert entry.error["type"] == PROVIDER_UNAVAILABLE
    assert entry.error["details"]["capability"] == "refresh"
