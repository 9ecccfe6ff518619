# tests/core/config/test_parameters.py
"""
Testes de validação do ParameterSet.

Parâmetros malformados precisam falhar antes de qualquer catálogo ser
produzido, com um InvalidParameterError que aponta o parâmetro.

Invariantes:
    - `server` é obrigatório
    - Chaves desconhecidas são rejeitadas
    - Nenhuma instância parcial é criada em caso de erro
"""

import pytest

try:
    from hostconverge.core.config.parameters import ParameterSet
    from hostconverge.core.exceptions import InvalidParameterError
except Exception as e:  # noqa: BLE001
    ParameterSet = None
    InvalidParameterError = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing parameters module. Implement:\n"
            "- src/hostconverge/core/config/parameters.py (ParameterSet)\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_defaults_are_applied():
    """
    Verifica os defaults do módulo de agente.

    Invariantes:
        - Intervalo de 30 minutos equivale a 1800 segundos
        - O comando one-shot aponta para o arquivo de configuração
    """
    _require_imports()
    params = ParameterSet.from_mapping({"server": "puppet.example.com"})
    assert params.server_port == 8140
    assert params.run_style == "service"
    assert params.run_interval == 30
    assert params.run_interval_seconds == 1800
    assert params.splay is False
    assert params.uid is None
    assert "--config /etc/puppet/puppet.conf" in params.oneshot_command
    assert "--onetime" in params.oneshot_command


def test_string_values_are_coerced():
    _require_imports()
    params = ParameterSet.from_mapping(
        {"server": "puppet.example.com", "server_port": "8141", "splay": "yes", "uid": "52"}
    )
    assert params.server_port == 8141
    assert params.splay is True
    assert params.uid == 52


def test_custom_agent_command_wins():
    _require_imports()
    params = ParameterSet.from_mapping({"server": "puppet.example.com", "agent_command": "/opt/agent --once"})
    assert params.oneshot_command == "/opt/agent --once"


def test_missing_server_is_rejected():
    _require_imports()
    with pytest.raises(InvalidParameterError) as exc_info:
        ParameterSet.from_mapping({"run_style": "service"})
    assert exc_info.value.details["parameter"] == "server"


def test_unknown_keys_are_rejected():
    """
    Verifica que chaves desconhecidas não são ignoradas silenciosamente.

    Um erro de digitação (`run_intreval`) precisa falhar, e não cair no
    default de 30 minutos sem aviso.
    """
    _require_imports()
    with pytest.raises(InvalidParameterError) as exc_info:
        ParameterSet.from_mapping({"server": "puppet.example.com", "run_intreval": 10})
    assert exc_info.value.details["unknown"] == ["run_intreval"]


@pytest.mark.parametrize(
    "key, value",
    [
        ("run_interval", 0),
        ("run_interval", "often"),
        ("run_interval", True),
        ("server_port", 70000),
        ("splay", "maybe"),
        ("uid", -1),
        ("server", ""),
        ("environment", "   "),
    ],
)
def test_malformed_values_are_rejected(key, value):
    _require_imports()
    with pytest.raises(InvalidParameterError) as exc_info:
        ParameterSet.from_mapping({"server": "puppet.example.com", key: value})
    assert exc_info.value.details["parameter"] == key


def test_non_mapping_document_is_rejected():
    _require_imports()
    with pytest.raises(InvalidParameterError):
        ParameterSet.from_mapping(["server"])  # type: ignore[arg-type]


def test_empty_run_style_is_left_to_the_selector():
    """
    Verifica que `run_style` só é validado quanto ao tipo.

    Decisões arquiteturais:
        - Valor vazio ou desconhecido não é erro de parâmetro; o Run-Style
          Selector o classifica como não suportado
    """
    _require_imports()
    assert ParameterSet.from_mapping({"server": "puppet.example.com", "run_style": ""}).run_style == ""
    assert ParameterSet.from_mapping({"server": "puppet.example.com", "run_style": " launchd "}).run_style == "launchd"


def test_non_text_run_style_is_rejected():
    _require_imports()
    with pytest.raises(InvalidParameterError) as exc_info:
        ParameterSet.from_mapping({"server": "puppet.example.com", "run_style": 3})
    assert exc_info.value.details["parameter"] == "run_style"
