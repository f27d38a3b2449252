"""
Ledger entities: capacity counters, locked balances, venues and routes.

**Conceptual**: These are the passive data holders the engine mutates. A venue
(chain) holds the strategy's spendable balance there and a queue of locked
balances that are still in transit; a route joins two venues and, in the route
topology, owns the capacities actions consume.

**Accounting rules**:
  - Balances and capacities are never negative.
  - A capacity with a cap never exceeds it; regeneration and credits are
    clamped, consumption is checked by the executor before it happens.
  - Locked balances belong to exactly one venue queue. They are decremented
    once per tick and credited to the venue balance the tick their counter
    reaches zero, in insertion order.

**Teaching note**: Nothing in this module validates actions or decides what
happens in a tick. Keeping entities dumb makes the executor the single place
where state changes are checked, which is what lets a rejected action leave
the ledger untouched.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from liquidity_sim.config.seeds import RouteSeed, VenueSeed


@dataclass
class CapacityCounter:
    """
    A replenishing capacity with an optional ceiling.

    Attributes:
        current: Capacity available right now.
        regen_per_tick: Amount added by every `replenish()` call.
        cap: Optional ceiling. None = grows without bound.
    """
    current: float
    regen_per_tick: float = 0.0
    cap: Optional[float] = None

    def _clamp(self, value: float) -> float:
        if self.cap is not None:
            return min(value, self.cap)
        return value

    def replenish(self) -> None:
        """Add one tick of regeneration, clamped to the cap."""
        self.current = self._clamp(self.current + self.regen_per_tick)

    def can_cover(self, amount: float) -> bool:
        return self.current >= amount

    def consume(self, amount: float) -> None:
        """
        Remove `amount` from the capacity.

        Raises:
            ValueError: If amount exceeds the current capacity. The executor
                        checks `can_cover` first, so this signals a bug.
        """
        if amount > self.current:
            raise ValueError(
                f"Cannot consume {amount} from capacity {self.current}."
            )
        self.current -= amount

    def credit(self, amount: float) -> None:
        """Add `amount` to the capacity, clamped to the cap."""
        self.current = self._clamp(self.current + amount)


@dataclass
class LockedBalance:
    """
    A pending credit waiting to become spendable.

    Attributes:
        amount: Amount credited to the venue balance on maturity.
        remaining_ticks: Ticks left before maturity. Never negative.
    """
    amount: float
    remaining_ticks: int


class LockedBalanceQueue:
    """
    Insertion-ordered collection of locked balances held by one venue.

    **Conceptual**: Every successful action creates one entry at its
    destination venue. `advance()` is called once per tick: it decrements
    every counter (floored at zero), removes entries that reached zero and
    returns their amounts in insertion order so settlement is reproducible.
    """

    def __init__(self) -> None:
        self._entries: List[LockedBalance] = []

    def add(self, amount: float, delay: int) -> LockedBalance:
        """Queue a new locked balance maturing after `delay` ticks."""
        entry = LockedBalance(amount=amount, remaining_ticks=max(int(delay), 0))
        self._entries.append(entry)
        return entry

    def advance(self) -> List[float]:
        """
        Decrement every entry and pop the ones that matured.

        Returns:
            Amounts of matured entries, in insertion order.
        """
        matured: List[float] = []
        pending: List[LockedBalance] = []

        for entry in self._entries:
            if entry.remaining_ticks > 0:
                entry.remaining_ticks -= 1
            if entry.remaining_ticks == 0:
                matured.append(entry.amount)
            else:
                pending.append(entry)

        self._entries = pending
        return matured

    @property
    def total(self) -> float:
        """Sum of all locked amounts."""
        return sum(entry.amount for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LockedBalance]:
        return iter(self._entries)


@dataclass
class Venue:
    """
    A chain the strategy holds funds on.

    **Conceptual**: In the venue topology a venue also owns the capacities
    actions consume and the execution parameters (gas, surplus, delays) of
    actions sourced from it. In the route topology those live on routes and
    the venue only contributes its balance and locked queue.

    Attributes:
        name: Unique venue name.
        balance: Spendable balance.
        orderflow: Order-flow capacity (consumed by execute actions).
        outflow: Outflow/bridging capacity (consumed by bridge actions).
        gas_cost: Gas paid by actions sourced from this venue.
        execution_surplus: Multiplier applied to executed amounts after gas.
        bridging_delay: Lock delay for amounts bridged out of this venue.
        inventory_lock_delay: Lock delay for orders executed from this venue.
        locked: Queue of in-transit credits waiting on this venue.
    """
    name: str
    balance: float
    orderflow: CapacityCounter
    outflow: CapacityCounter
    gas_cost: float = 0.0
    execution_surplus: float = 1.0
    bridging_delay: int = 0
    inventory_lock_delay: int = 0
    locked: LockedBalanceQueue = field(default_factory=LockedBalanceQueue)

    @classmethod
    def from_seed(cls, seed: VenueSeed) -> "Venue":
        return cls(
            name=seed.name,
            balance=seed.balance,
            orderflow=CapacityCounter(
                current=seed.orderflow_capacity,
                regen_per_tick=seed.orderflow_regen_per_tick,
                cap=seed.orderflow_cap,
            ),
            outflow=CapacityCounter(
                current=seed.outflow_capacity,
                regen_per_tick=seed.outflow_regen_per_tick,
                cap=seed.outflow_cap,
            ),
            gas_cost=seed.gas_cost,
            execution_surplus=seed.execution_surplus,
            bridging_delay=int(seed.bridging_delay),
            inventory_lock_delay=int(seed.inventory_lock_delay),
        )

    def replenish(self) -> None:
        self.orderflow.replenish()
        self.outflow.replenish()

    def settle(self) -> List[float]:
        """
        Advance the locked queue and credit matured amounts to the balance.

        Returns:
            Settled amounts in insertion order.
        """
        matured = self.locked.advance()
        for amount in matured:
            self.balance += amount
        return matured

    @property
    def total_value(self) -> float:
        """Spendable balance plus everything still locked on this venue."""
        return self.balance + self.locked.total


@dataclass
class Route:
    """
    A directional connection between two venues with its own capacities.

    Parameters are fixed after creation; only the two counters change.
    Venues are referenced by name and resolved through the registry.
    """
    name: str
    source: str
    destination: str
    orderflow: CapacityCounter
    outflow: CapacityCounter
    gas_cost: float = 0.0
    execution_surplus: float = 1.0
    bridging_delay: int = 0
    inventory_lock_delay: int = 0

    @classmethod
    def from_seed(cls, seed: RouteSeed) -> "Route":
        return cls(
            name=seed.name,
            source=seed.source,
            destination=seed.destination,
            orderflow=CapacityCounter(
                current=seed.orderflow_capacity,
                regen_per_tick=seed.orderflow_regen_per_tick,
                cap=seed.orderflow_cap,
            ),
            outflow=CapacityCounter(
                current=seed.outflow_capacity,
                regen_per_tick=seed.outflow_regen_per_tick,
                cap=seed.outflow_cap,
            ),
            gas_cost=seed.gas_cost,
            execution_surplus=seed.execution_surplus,
            bridging_delay=int(seed.bridging_delay),
            inventory_lock_delay=int(seed.inventory_lock_delay),
        )

    def replenish(self) -> None:
        self.orderflow.replenish()
        self.outflow.replenish()

    def connects(self, source: str, destination: str) -> bool:
        return self.source == source and self.destination == destination
