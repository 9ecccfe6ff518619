# src/hostconverge/core/__init__.py
"""
Core do hostconverge.

Implementação canônica do engine de convergência de um único host.

Componentes principais:
    - config       → entradas da run (parâmetros, fatos, engine), merge e hashing
    - catalog      → recursos, identidade e fatos
    - compiler     → parâmetros + fatos → catálogo
    - providers    → contrato dos colaboradores que tocam o host
    - engine       → planejamento, aplicação e RunReport
    - traceability → Manifest e Event Log

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo desfecho aparece no report
    - A mesma entrada produz o mesmo catálogo e o mesmo plano
    - Efeitos no host só acontecem via providers
"""
