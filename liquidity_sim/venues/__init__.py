"""
Ledger entities and the registry that owns them.

Defines venues, routes, capacity counters and locked-balance queues, the
read-only snapshot handed to strategies, and name-based lookup.
"""
