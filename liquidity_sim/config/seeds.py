"""
Seed data for venues and routes.

**Conceptual**: Seeds are the configuration records a simulation is built from:
venue names, starting balances, capacities and their regeneration rates, gas
costs, execution surplus and settlement delays. They are immutable once
created and validated eagerly, so a malformed scenario fails at construction
time rather than halfway through a run.

**Capacity caps**: Each capacity has an optional cap (`None` = unbounded
regeneration). The capped variant of the model clamps capacities to 1.5x their
initial value; `apply_capacity_cap_multiplier` derives those caps from the
initial capacities so both variants come from the same seed data.

**Teaching note**: Keeping seed data separate from engine logic means the same
engine can run any scenario (a CSV file, a test fixture, the built-in default)
without code changes. Numbers live in data, behaviour lives in code.
"""

import math
import numbers
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Optional


DEFAULT_CAPACITY_CAP_MULTIPLIER = 1.5


class Topology(str, Enum):
    """
    Who owns capacity and execution parameters.

    VENUE: each venue owns its capacities; gas, surplus and delays come from
           the source venue, capacity is drawn from the destination venue.
    ROUTE: each directional route owns its capacities and parameters; an
           action must resolve to a route between its two venues.
    """
    VENUE = "venue"
    ROUTE = "route"


class ConfigurationError(ValueError):
    """
    Raised when seed data or settings are malformed.

    **Conceptual**: Configuration errors are fatal: they are raised while the
    simulation is being constructed (duplicate venue names, negative balances,
    a route pointing at an unknown venue) and never once ticks are running.
    """
    pass


def _check_non_negative(owner: str, field_name: str, value: float) -> None:
    if not isinstance(value, numbers.Real) or not math.isfinite(value) or value < 0:
        raise ConfigurationError(
            f"{owner}: '{field_name}' must be a finite non-negative number, got {value!r}."
        )


def _check_cap(owner: str, field_name: str, cap: Optional[float], initial: float) -> None:
    if cap is None:
        return
    _check_non_negative(owner, field_name, cap)
    if cap < initial:
        raise ConfigurationError(
            f"{owner}: '{field_name}' ({cap}) is below the initial capacity ({initial})."
        )


@dataclass(frozen=True)
class VenueSeed:
    """
    Seed record for a single venue (chain).

    Attributes:
        name: Unique venue name (e.g., "A").
        balance: Starting spendable balance of the strategy on this venue.
        orderflow_capacity: Initial order-flow capacity (how much can be
                            executed against this venue).
        orderflow_regen_per_tick: Order-flow capacity regenerated every tick.
        outflow_capacity: Initial outflow (bridging) capacity.
        outflow_regen_per_tick: Outflow capacity regenerated every tick.
        gas_cost: Gas paid by actions sourced from this venue.
        execution_surplus: Multiplier applied to executed amounts after gas
                           (1.0005 = 5 bips profit).
        bridging_delay: Ticks a bridged amount stays locked at the destination.
        inventory_lock_delay: Ticks an executed amount stays locked.
        orderflow_cap: Optional ceiling for order-flow capacity.
        outflow_cap: Optional ceiling for outflow capacity.
    """
    name: str
    balance: float = 0.0
    orderflow_capacity: float = 0.0
    orderflow_regen_per_tick: float = 0.0
    outflow_capacity: float = 0.0
    outflow_regen_per_tick: float = 0.0
    gas_cost: float = 0.0
    execution_surplus: float = 1.0
    bridging_delay: int = 0
    inventory_lock_delay: int = 0
    orderflow_cap: Optional[float] = None
    outflow_cap: Optional[float] = None

    def __post_init__(self):
        """Validate the seed after initialization."""
        if not self.name:
            raise ConfigurationError("Venue seed requires a non-empty name.")
        owner = f"venue '{self.name}'"
        for field_name in (
            "balance",
            "orderflow_capacity",
            "orderflow_regen_per_tick",
            "outflow_capacity",
            "outflow_regen_per_tick",
            "gas_cost",
            "execution_surplus",
            "bridging_delay",
            "inventory_lock_delay",
        ):
            _check_non_negative(owner, field_name, getattr(self, field_name))
        _check_cap(owner, "orderflow_cap", self.orderflow_cap, self.orderflow_capacity)
        _check_cap(owner, "outflow_cap", self.outflow_cap, self.outflow_capacity)


@dataclass(frozen=True)
class RouteSeed:
    """
    Seed record for a directional route between two venues.

    Routes are used by the route topology, where capacities and execution
    parameters belong to the route rather than to the venues it joins.

    Attributes:
        name: Unique route name (e.g., "A->B").
        source: Name of the venue actions on this route are funded from.
        destination: Name of the venue that receives the locked credit.
        orderflow_capacity, orderflow_regen_per_tick, outflow_capacity,
        outflow_regen_per_tick, gas_cost, execution_surplus, bridging_delay,
        inventory_lock_delay, orderflow_cap, outflow_cap: as for VenueSeed,
            but owned by the route.
    """
    name: str
    source: str
    destination: str
    orderflow_capacity: float = 0.0
    orderflow_regen_per_tick: float = 0.0
    outflow_capacity: float = 0.0
    outflow_regen_per_tick: float = 0.0
    gas_cost: float = 0.0
    execution_surplus: float = 1.0
    bridging_delay: int = 0
    inventory_lock_delay: int = 0
    orderflow_cap: Optional[float] = None
    outflow_cap: Optional[float] = None

    def __post_init__(self):
        """Validate the seed after initialization."""
        if not self.name:
            raise ConfigurationError("Route seed requires a non-empty name.")
        owner = f"route '{self.name}'"
        if not self.source or not self.destination:
            raise ConfigurationError(f"{owner}: source and destination are required.")
        if self.source == self.destination:
            raise ConfigurationError(
                f"{owner}: source and destination must differ, both are '{self.source}'."
            )
        for field_name in (
            "orderflow_capacity",
            "orderflow_regen_per_tick",
            "outflow_capacity",
            "outflow_regen_per_tick",
            "gas_cost",
            "execution_surplus",
            "bridging_delay",
            "inventory_lock_delay",
        ):
            _check_non_negative(owner, field_name, getattr(self, field_name))
        _check_cap(owner, "orderflow_cap", self.orderflow_cap, self.orderflow_capacity)
        _check_cap(owner, "outflow_cap", self.outflow_cap, self.outflow_capacity)


def apply_capacity_cap_multiplier(seeds: Iterable, multiplier: Optional[float]) -> list:
    """
    Derive capacity caps from initial capacities.

    **Conceptual**: The capped model clamps each capacity to `multiplier` times
    its initial value (1.5 in the reference scenario). Passing `None` removes
    all caps, giving the uncapped model where capacity grows without bound.

    Args:
        seeds: VenueSeed or RouteSeed records.
        multiplier: Cap as a multiple of the initial capacity, or None for
                    uncapped regeneration. Must be >= 1.0 when given.

    Returns:
        New list of seeds (inputs are frozen and left untouched).

    Raises:
        ConfigurationError: If multiplier is below 1.0.
    """
    if multiplier is not None and (not math.isfinite(multiplier) or multiplier < 1.0):
        raise ConfigurationError(
            f"capacity cap multiplier must be >= 1.0 or None, got {multiplier!r}."
        )

    result = []
    for seed in seeds:
        if multiplier is None:
            result.append(replace(seed, orderflow_cap=None, outflow_cap=None))
        else:
            result.append(replace(
                seed,
                orderflow_cap=seed.orderflow_capacity * multiplier,
                outflow_cap=seed.outflow_capacity * multiplier,
            ))
    return result


def default_venue_seeds(
    capacity_cap_multiplier: Optional[float] = DEFAULT_CAPACITY_CAP_MULTIPLIER,
) -> List[VenueSeed]:
    """
    Return the reference three-venue scenario (A, B, C).

    Venue A starts with all the funds; B and C start empty. A has high order
    flow and cheap gas, B is balanced, C has cheap bridging but slow execution.

    Args:
        capacity_cap_multiplier: Cap multiplier (default 1.5), or None for
                                 uncapped capacities.
    """
    seeds = [
        VenueSeed(
            name="A",
            balance=10.0,
            orderflow_capacity=10.0,
            orderflow_regen_per_tick=0.64,   # high order flow
            outflow_capacity=30.0,
            outflow_regen_per_tick=0.24,     # low bridging rate
            gas_cost=0.0001,
            execution_surplus=1.0005,        # 5 bips
            bridging_delay=4,
            inventory_lock_delay=4,
        ),
        VenueSeed(
            name="B",
            balance=0.0,
            orderflow_capacity=30.0,
            orderflow_regen_per_tick=0.38,
            outflow_capacity=10.0,
            outflow_regen_per_tick=0.4,
            gas_cost=0.0005,
            execution_surplus=1.0003,        # 3 bips
            bridging_delay=6,
            inventory_lock_delay=6,
        ),
        VenueSeed(
            name="C",
            balance=0.0,
            orderflow_capacity=40.0,
            orderflow_regen_per_tick=0.24,   # low order flow
            outflow_capacity=30.0,
            outflow_regen_per_tick=0.61,     # high bridging rate
            gas_cost=0.0008,
            execution_surplus=1.0009,        # 9 bips
            bridging_delay=4,
            inventory_lock_delay=8,
        ),
    ]
    return apply_capacity_cap_multiplier(seeds, capacity_cap_multiplier)


def routes_from_venue_seeds(venue_seeds: Iterable[VenueSeed]) -> List[RouteSeed]:
    """
    Derive one directional route per ordered pair of venues.

    **Conceptual**: A route `X->Y` takes its capacities (and caps) from the
    destination venue Y and its gas, surplus and delays from the source venue
    X, which is exactly what the per-venue model charges for the same action.
    The difference in the route topology is that each route keeps its own
    counters, so traffic on `A->B` no longer drains capacity seen by `C->B`.

    Args:
        venue_seeds: Venue seeds in declaration order.

    Returns:
        Route seeds named "<source>-><destination>", ordered by source then
        destination in the venues' declaration order.
    """
    venue_seeds = list(venue_seeds)
    routes = []
    for source in venue_seeds:
        for destination in venue_seeds:
            if source.name == destination.name:
                continue
            routes.append(RouteSeed(
                name=f"{source.name}->{destination.name}",
                source=source.name,
                destination=destination.name,
                orderflow_capacity=destination.orderflow_capacity,
                orderflow_regen_per_tick=destination.orderflow_regen_per_tick,
                outflow_capacity=destination.outflow_capacity,
                outflow_regen_per_tick=destination.outflow_regen_per_tick,
                gas_cost=source.gas_cost,
                execution_surplus=source.execution_surplus,
                bridging_delay=source.bridging_delay,
                inventory_lock_delay=source.inventory_lock_delay,
                orderflow_cap=destination.orderflow_cap,
                outflow_cap=destination.outflow_cap,
            ))
    return routes
