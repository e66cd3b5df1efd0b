"""Infrastructure Layer — database sessions and cross-cutting concerns.

Invariants:
    - Infrastructure never imports domain rules from core/ (errors excepted)
    - Storage failures are mapped to the core error hierarchy before leaving here
"""
