# src/hostconverge/__init__.py
"""
hostconverge — engine declarativo de convergência para um único host.

Compila parâmetros e fatos do host em um catálogo de recursos, ordena o
catálogo pelas dependências declaradas e aplica cada recurso de forma
idempotente por meio de providers, entregando refreshes quando recursos
mudam.

Arquitetura em alto nível:
    - core.config       → leitura e validação das entradas
    - core.compiler     → catálogo do agente (pacote, configuração, run style)
    - core.engine       → planner, applier e RunReport
    - core.traceability → Manifest e Event Log
"""

__version__ = "0.1.0"
