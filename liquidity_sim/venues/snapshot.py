"""
Read-only views of the ledger handed to strategies.

**Conceptual**: A strategy must never mutate simulation state; every effect
has to flow through an Action and the executor. The snapshot enforces that by
copying the registry into frozen dataclasses and tuples. A strategy can look
at anything (balances, capacities, pending locks, route parameters) but
cannot change it, and nothing it holds on to changes under its feet when the
executor runs.

**Teaching note**: Copying is cheap at this scale (a handful of venues) and
removes a whole class of aliasing bugs. The same idea appears in backtest
engines that slice data up to the current date before calling a strategy so
it cannot peek into the future.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from liquidity_sim.config.seeds import Topology


@dataclass(frozen=True)
class LockedView:
    amount: float
    remaining_ticks: int


@dataclass(frozen=True)
class VenueView:
    """Frozen copy of a venue at the start of a tick (after replenishment)."""
    name: str
    balance: float
    orderflow_capacity: float
    outflow_capacity: float
    orderflow_cap: Optional[float]
    outflow_cap: Optional[float]
    gas_cost: float
    execution_surplus: float
    bridging_delay: int
    inventory_lock_delay: int
    locked: Tuple[LockedView, ...] = ()

    @property
    def locked_total(self) -> float:
        return sum(entry.amount for entry in self.locked)


@dataclass(frozen=True)
class RouteView:
    """Frozen copy of a route at the start of a tick (after replenishment)."""
    name: str
    source: str
    destination: str
    orderflow_capacity: float
    outflow_capacity: float
    gas_cost: float
    execution_surplus: float
    bridging_delay: int
    inventory_lock_delay: int


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Everything a strategy may look at for one tick.

    Attributes:
        tick: Index of the tick being simulated (0-based).
        topology: Whether capacities live on venues or on routes.
        venues: Venue views in registry order.
        routes: Route views in registry order (empty in the venue topology
                unless routes were declared anyway).
    """
    tick: int
    topology: Topology
    venues: Tuple[VenueView, ...]
    routes: Tuple[RouteView, ...] = ()

    def venue(self, name: str) -> Optional[VenueView]:
        """Return the venue named `name`, or None if there is none."""
        for view in self.venues:
            if view.name == name:
                return view
        return None

    def route(
        self,
        source: str,
        destination: str,
        name: Optional[str] = None,
    ) -> Optional[RouteView]:
        """Return the first route from `source` to `destination` (optionally by name)."""
        for view in self.routes:
            if view.source != source or view.destination != destination:
                continue
            if name is None or view.name == name:
                return view
        return None
