"""
liquidity_sim – discrete-time simulation of liquidity flows across venues.

Venues (chains) hold spendable balances and in-flight locked balances, routes
connect them, and a pluggable strategy proposes bridge/execute actions every
tick. The engine replenishes capacities, settles matured locks, and validates
and applies actions in a fully deterministic order.
"""
