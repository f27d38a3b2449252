"""
Run analytics: value-curve metrics and tabular views of simulation events.

Includes total return, drawdown, gas/surplus accounting and rejection summaries
computed from simulation results.
"""
