"""
Strategy interface and base implementations.

**Conceptual**: This module defines the contract between strategies and the
simulation engine. Once per tick the engine hands the strategy an immutable
MarketSnapshot (venues, routes, balances, capacities, pending locks) and the
strategy returns an ordered sequence of Actions. The strategy never touches
the ledger: the executor validates and applies its actions afterwards, in the
order they were returned.

**Why a strategy interface?**
  - Decoupling: the engine doesn't need to know any decision logic.
  - Extensibility: new strategies plug in without modifying the engine.
  - Testability: the engine can be tested with scripted strategies, and
    strategies can be tested against hand-built snapshots.

**Teaching note**: This is a Protocol (structural typing), not an ABC. Any
object with a `propose_actions` method matching the signature is a Strategy;
it is injected into the simulation at construction time rather than
subclassed from an engine base class.
"""

from typing import Dict, Iterable, List, Mapping, Protocol, Sequence

from liquidity_sim.execution.actions import Action
from liquidity_sim.venues.snapshot import MarketSnapshot


class Strategy(Protocol):
    """
    Strategy interface for the simulation.

    **Conceptual**: A Strategy turns a read-only snapshot into proposed
    actions. It may keep its own internal state between ticks (for example a
    schedule or a running signal), but the only way it affects the simulation
    is through the actions it returns.
    """

    def propose_actions(self, snapshot: MarketSnapshot) -> Sequence[Action]:
        """
        Propose actions for the current tick.

        **Action semantics**:
          - Actions are applied in the order returned.
          - Each action sees the effects of the ones before it, so a later
            action may be rejected because an earlier one used up balance or
            capacity.
          - An empty sequence means "do nothing this tick".

        Args:
            snapshot: Immutable view of venues and routes for this tick,
                      taken after capacities were replenished.

        Returns:
            Ordered sequence of Actions (possibly empty).
        """
        ...


# ============================================================================
# Simple strategy implementations for testing and demonstration
# ============================================================================

class IdleStrategy:
    """
    Strategy that never proposes anything.

    Useful for checking engine plumbing: with no actions, only capacity
    regeneration and settlement of pre-existing locks change the ledger, and
    total value stays constant.
    """

    def propose_actions(self, snapshot: MarketSnapshot) -> Sequence[Action]:
        return []


class ScriptedStrategy:
    """
    Strategy that replays a fixed tick -> actions schedule.

    **Conceptual**: Deterministic and easy to reason about by hand, which
    makes it the workhorse for engine tests. It also records every snapshot it
    was given, so tests can check what the strategy was able to see.

    Args:
        schedule: Mapping from tick index to the actions to propose that tick.
                  Ticks not in the mapping propose nothing.
    """

    def __init__(self, schedule: Mapping[int, Iterable[Action]]):
        self.schedule: Dict[int, List[Action]] = {
            tick: list(actions) for tick, actions in schedule.items()
        }
        self.snapshots: List[MarketSnapshot] = []

    def propose_actions(self, snapshot: MarketSnapshot) -> Sequence[Action]:
        self.snapshots.append(snapshot)
        return list(self.schedule.get(snapshot.tick, []))
