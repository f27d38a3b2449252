"""
Venue and route registry.

**Conceptual**: The registry is the single owner of every venue and route in a
simulation. The executor and scheduler receive it explicitly instead of
reaching for module-level lists, so two simulations can run side by side and
tests can build throwaway registries.

**Lookup contract**:
  - `find_venue` / `find_route` return None when nothing matches; callers must
    handle the miss explicitly.
  - `get_venue` / `get_route` raise UnknownVenueError / UnknownRouteError.
  - Routes are resolved by their explicit (source, destination) pair, first
    match in declared order, optionally narrowed by route name. Route names
    are never parsed, so "AB->C" cannot be mistaken for a route from "A".

Uniqueness of names is checked once at construction; lookups are linear scans,
which is plenty for a handful of venues.
"""

from typing import Iterable, List, Optional, Sequence

from liquidity_sim.config.seeds import ConfigurationError, RouteSeed, Topology, VenueSeed
from liquidity_sim.simulation.events import StateReport, VenueTotals
from liquidity_sim.venues.base import Route, Venue
from liquidity_sim.venues.snapshot import LockedView, MarketSnapshot, RouteView, VenueView


class UnknownVenueError(KeyError):
    """Raised by `get_venue` when no venue has the requested name."""
    pass


class UnknownRouteError(KeyError):
    """Raised by `get_route` when no route joins the requested venues."""
    pass


class VenueRegistry:
    """
    Authoritative, ordered collection of venues and routes.

    Args:
        venues: Venues in declaration order. Names must be unique.
        routes: Routes in declaration order. Names must be unique and both
                endpoints must be registered venues.

    Raises:
        ConfigurationError: On duplicate names or dangling route endpoints.
    """

    def __init__(self, venues: Iterable[Venue], routes: Iterable[Route] = ()):
        self._venues: List[Venue] = list(venues)
        self._routes: List[Route] = list(routes)

        if not self._venues:
            raise ConfigurationError("A simulation needs at least one venue.")

        seen = set()
        for venue in self._venues:
            if venue.name in seen:
                raise ConfigurationError(f"Duplicate venue name '{venue.name}'.")
            seen.add(venue.name)

        route_names = set()
        for route in self._routes:
            if route.name in route_names:
                raise ConfigurationError(f"Duplicate route name '{route.name}'.")
            route_names.add(route.name)
            if route.source == route.destination:
                raise ConfigurationError(
                    f"Route '{route.name}' starts and ends at '{route.source}'."
                )
            for endpoint in (route.source, route.destination):
                if endpoint not in seen:
                    raise ConfigurationError(
                        f"Route '{route.name}' references unknown venue '{endpoint}'."
                    )

    @classmethod
    def from_seeds(
        cls,
        venue_seeds: Iterable[VenueSeed],
        route_seeds: Iterable[RouteSeed] = (),
    ) -> "VenueRegistry":
        return cls(
            venues=[Venue.from_seed(seed) for seed in venue_seeds],
            routes=[Route.from_seed(seed) for seed in route_seeds],
        )

    @property
    def venues(self) -> Sequence[Venue]:
        return tuple(self._venues)

    @property
    def routes(self) -> Sequence[Route]:
        return tuple(self._routes)

    # ========================================================================
    # Lookup
    # ========================================================================

    def find_venue(self, name: str) -> Optional[Venue]:
        for venue in self._venues:
            if venue.name == name:
                return venue
        return None

    def get_venue(self, name: str) -> Venue:
        venue = self.find_venue(name)
        if venue is None:
            raise UnknownVenueError(
                f"Venue '{name}' not found. "
                f"Available venues: {[v.name for v in self._venues]}"
            )
        return venue

    def find_route(
        self,
        source: str,
        destination: str,
        name: Optional[str] = None,
    ) -> Optional[Route]:
        """
        Return the first declared route from `source` to `destination`.

        Args:
            source: Source venue name.
            destination: Destination venue name.
            name: Optional route name; when given, only a route with that
                  exact name joining the same two venues matches.
        """
        for route in self._routes:
            if not route.connects(source, destination):
                continue
            if name is None or route.name == name:
                return route
        return None

    def get_route(self, source: str, destination: str, name: Optional[str] = None) -> Route:
        route = self.find_route(source, destination, name)
        if route is None:
            label = f"'{name}' " if name else ""
            raise UnknownRouteError(
                f"No route {label}from '{source}' to '{destination}'."
            )
        return route

    # ========================================================================
    # Per-tick state transitions
    # ========================================================================

    def replenish(self) -> None:
        """Regenerate every venue and route capacity by one tick."""
        for venue in self._venues:
            venue.replenish()
        for route in self._routes:
            route.replenish()

    # ========================================================================
    # Views
    # ========================================================================

    def snapshot(self, tick: int, topology: Topology = Topology.VENUE) -> MarketSnapshot:
        """Build an immutable copy of the ledger for strategies."""
        venues = tuple(
            VenueView(
                name=v.name,
                balance=v.balance,
                orderflow_capacity=v.orderflow.current,
                outflow_capacity=v.outflow.current,
                orderflow_cap=v.orderflow.cap,
                outflow_cap=v.outflow.cap,
                gas_cost=v.gas_cost,
                execution_surplus=v.execution_surplus,
                bridging_delay=v.bridging_delay,
                inventory_lock_delay=v.inventory_lock_delay,
                locked=tuple(
                    LockedView(amount=entry.amount, remaining_ticks=entry.remaining_ticks)
                    for entry in v.locked
                ),
            )
            for v in self._venues
        )
        routes = tuple(
            RouteView(
                name=r.name,
                source=r.source,
                destination=r.destination,
                orderflow_capacity=r.orderflow.current,
                outflow_capacity=r.outflow.current,
                gas_cost=r.gas_cost,
                execution_surplus=r.execution_surplus,
                bridging_delay=r.bridging_delay,
                inventory_lock_delay=r.inventory_lock_delay,
            )
            for r in self._routes
        )
        return MarketSnapshot(tick=tick, topology=topology, venues=venues, routes=routes)

    def state_report(self, tick: Optional[int] = None) -> StateReport:
        """Aggregate spendable and locked balances per venue."""
        return StateReport(
            tick=tick,
            venues=tuple(
                VenueTotals(name=v.name, spendable=v.balance, locked=v.locked.total)
                for v in self._venues
            ),
        )

    @property
    def total_value(self) -> float:
        return sum(v.total_value for v in self._venues)
