"""Services Layer — imperative shell around the pure core.

Invariants:
    - Every write goes through EntityWriteService (authorize → write → triggers → commit)
    - Services own their transactions; routes never commit

Design Decisions:
    - One service per concern: entity writes, identity/roles, accounts,
      notification inbox, forbidden words
"""
