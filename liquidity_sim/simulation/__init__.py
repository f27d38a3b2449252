"""
Tick scheduler, simulation driver, and structured run events.

Orchestrates registry, strategy and executor to produce per-tick reports,
state snapshots and a total-value curve.
"""
