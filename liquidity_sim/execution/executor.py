"""
Action validator and executor.

**Conceptual**: The executor is the only component that mutates the ledger.
Given an action and the registry, it runs every precondition check first and
only then applies the transfer, so a rejected action leaves balances,
capacities and locked queues exactly as they were.

**Check order** (the first failure is reported):
  0. The action kind is bridge or execute.
  1. Source and destination differ.
  2. Both venues exist (and, in the route topology, a route joins them).
     The amount must be a finite, non-negative number.
  3. The source balance covers the amount.
  4. Bridge: the outflow capacity covers the amount, and the amount covers gas.
  5. Execute: the order-flow capacity covers the amount, and the amount covers gas.

**Where parameters come from**:
  - Venue topology: capacity is the destination venue's; gas, surplus and
    delays are the source venue's. A bridge also returns the bridged amount to
    the source venue's own outflow capacity (reciprocal liquidity).
  - Route topology: capacity, gas, surplus and delays all belong to the route.

**Financial logic**:
  - Bridge: net = amount - gas, queued at the destination for the bridging delay.
  - Execute: credited = (amount - gas) * surplus, queued at the destination
    for the inventory-lock delay.
  - Either way the full amount leaves the source balance immediately.

**Teaching note**: Actions in one tick are applied one after another with no
isolation, so an action can fail because an earlier action in the same tick
used up the capacity it needed. That is sequential consistency, not a race.
"""

import logging
import math
import numbers
from typing import Optional, Tuple, Union

from liquidity_sim.config.seeds import Topology
from liquidity_sim.execution.actions import Action, ActionKind, ActionOutcome, RejectionReason
from liquidity_sim.venues.base import CapacityCounter, Route, Venue
from liquidity_sim.venues.registry import VenueRegistry

logger = logging.getLogger(__name__)


class ActionExecutor:
    """
    Validates and applies actions against a registry.

    Args:
        registry: The registry whose venues/routes are mutated.
        topology: Topology.VENUE (per-venue capacities) or Topology.ROUTE
                  (per-route capacities and parameters).
    """

    def __init__(self, registry: VenueRegistry, topology: Topology = Topology.VENUE):
        self._registry = registry
        self._topology = Topology(topology)

    @property
    def topology(self) -> Topology:
        return self._topology

    def execute(self, action: Action, tick: int = 0) -> ActionOutcome:
        """
        Validate `action` and apply it if every check passes.

        Args:
            action: The proposed action.
            tick: Current tick, recorded on the outcome.

        Returns:
            ActionOutcome describing the applied transfer or the rejection.
        """
        try:
            kind = ActionKind(action.kind)
        except ValueError:
            return self._reject(
                tick, action, RejectionReason.INVALID_ACTION,
                f"unknown action kind {action.kind!r}",
            )

        # Check 1: no self-transfers, regardless of balances
        if action.source == action.destination:
            return self._reject(
                tick, action, RejectionReason.SELF_TRANSFER,
                f"source and destination are both '{action.source}'",
            )

        # Check 2: resolve venues (and route)
        source = self._registry.find_venue(action.source)
        destination = self._registry.find_venue(action.destination)
        if source is None or destination is None:
            missing = action.source if source is None else action.destination
            return self._reject(
                tick, action, RejectionReason.UNKNOWN_VENUE,
                f"venue '{missing}' not found",
            )

        route: Optional[Route] = None
        if self._topology is Topology.ROUTE:
            route = self._registry.find_route(action.source, action.destination, action.route)
            if route is None:
                label = f"'{action.route}' " if action.route else ""
                return self._reject(
                    tick, action, RejectionReason.UNKNOWN_ROUTE,
                    f"no route {label}from '{action.source}' to '{action.destination}'",
                )

        amount = action.amount
        if not isinstance(amount, numbers.Real) or not math.isfinite(amount) or amount < 0:
            return self._reject(
                tick, action, RejectionReason.INVALID_AMOUNT,
                f"amount must be finite and non-negative, got {amount!r}",
            )

        # Check 3: source funds
        if source.balance < amount:
            return self._reject(
                tick, action, RejectionReason.INSUFFICIENT_SOURCE_FUNDS,
                f"balance {source.balance} on '{source.name}' is below {amount}",
            )

        # Checks 4/5: destination capacity, then gas
        params: Union[Venue, Route] = route if route is not None else source
        capacity, capacity_label = self._capacity_for(kind, destination, route)

        if not capacity.can_cover(amount):
            return self._reject(
                tick, action, RejectionReason.INSUFFICIENT_DESTINATION_CAPACITY,
                f"{capacity_label} capacity {capacity.current} is below {amount}",
            )

        if amount < params.gas_cost:
            return self._reject(
                tick, action, RejectionReason.AMOUNT_BELOW_GAS_COST,
                f"amount {amount} does not cover gas {params.gas_cost}",
            )

        # All checks passed: apply
        if kind is ActionKind.BRIDGE:
            credited = amount - params.gas_cost
            delay = params.bridging_delay
            capacity.consume(amount)
            if route is None:
                source.outflow.credit(amount)
        else:
            credited = (amount - params.gas_cost) * params.execution_surplus
            delay = params.inventory_lock_delay
            capacity.consume(amount)

        source.balance -= amount
        destination.locked.add(credited, delay)

        outcome = ActionOutcome(
            tick=tick,
            action=action,
            credited_amount=credited,
            gas_cost=params.gas_cost,
            settle_in_ticks=delay,
            route=route.name if route is not None else None,
        )
        logger.debug(
            "[%d] %s %s -> %s amount=%s credited=%s in %d ticks",
            tick, kind.value, source.name, destination.name, amount, credited, delay,
        )
        return outcome

    def _capacity_for(
        self,
        kind: ActionKind,
        destination: Venue,
        route: Optional[Route],
    ) -> Tuple[CapacityCounter, str]:
        owner = route if route is not None else destination
        owner_label = f"route '{route.name}'" if route is not None else f"'{destination.name}'"
        if kind is ActionKind.BRIDGE:
            return owner.outflow, f"{owner_label} outflow"
        return owner.orderflow, f"{owner_label} order-flow"

    def _reject(
        self,
        tick: int,
        action: Action,
        reason: RejectionReason,
        detail: str,
    ) -> ActionOutcome:
        logger.debug("[%d] rejected %s: %s (%s)", tick, action, reason.value, detail)
        return ActionOutcome(tick=tick, action=action, reason=reason, detail=detail)
