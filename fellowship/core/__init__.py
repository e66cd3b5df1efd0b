"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - All functions are pure and deterministic (clocks and randomness injectable)

Design Decisions:
    - Functional core separated from imperative shell: permission rules,
      triggers and the username policy are testable without a database
"""
