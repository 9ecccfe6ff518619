# src/hostconverge/core/config/errors.py
"""
Exceções da camada de configuração do hostconverge.

A camada de configuração lê documentos já resolvidos (parâmetros, fatos
e opções do engine). As exceções aqui definidas representam violações
estruturais desses documentos e não falhas de compilação ou aplicação.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Validação de parâmetros do módulo NÃO vive aqui
      (ver `InvalidParameterError` em `core.exceptions`)
"""


class ConfigError(Exception):
    """
    Exceção base para erros de carregamento de configuração.

    Permite captura genérica de falhas de leitura, formato e merge,
    separando-as de erros de compilação do catálogo.
    """


class DefaultsNotFoundError(ConfigError):
    """
    O documento base (defaults) não existe no caminho informado.

    Decisões arquiteturais:
        - O documento de defaults é obrigatório
        - Nenhum default implícito é criado pelo loader
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo não suportada.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    O conteúdo raiz do documento (ou de uma seção obrigatória) não é um mapa.

    Limites explícitos:
        - Não tenta encapsular listas ou escalares em um dict
    """


class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos entre defaults e override durante o deep-merge.

    Exemplo de conflito:
        - base:     {"parameters": {"run_interval": 30}}
        - override: {"parameters": "cron"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """
