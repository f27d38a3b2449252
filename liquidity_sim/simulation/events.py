"""
Structured events emitted by the simulation.

**Conceptual**: The engine reports what happened as data, never as console
text. Each tick yields a TickReport with its settlement events and action
outcomes; StateReports capture aggregate balances (spendable + locked per
venue, grand total) at the start, periodically, and at the end of a run.
A reporting layer (the console script, a notebook, a CSV writer) decides how
to render them.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import pandas as pd

from liquidity_sim.execution.actions import ActionOutcome


@dataclass(frozen=True)
class SettlementEvent:
    """A locked balance matured and became spendable on `venue`."""
    tick: int
    venue: str
    amount: float


@dataclass(frozen=True)
class VenueTotals:
    name: str
    spendable: float
    locked: float

    @property
    def total(self) -> float:
        return self.spendable + self.locked


@dataclass(frozen=True)
class StateReport:
    """
    Aggregate balances across all venues.

    Attributes:
        tick: Tick after which the report was taken (None = before any tick).
        venues: Per-venue totals in registry order.
    """
    tick: Optional[int]
    venues: Tuple[VenueTotals, ...]

    @property
    def total(self) -> float:
        """Grand total: every venue's spendable plus locked balance."""
        return sum(v.total for v in self.venues)

    def venue(self, name: str) -> Optional[VenueTotals]:
        for totals in self.venues:
            if totals.name == name:
                return totals
        return None

    def to_frame(self) -> pd.DataFrame:
        """
        Tabular view: one row per venue with spendable, locked and total.
        """
        return pd.DataFrame(
            {
                'venue': [v.name for v in self.venues],
                'spendable': [v.spendable for v in self.venues],
                'locked': [v.locked for v in self.venues],
                'total': [v.total for v in self.venues],
            }
        )


@dataclass
class TickReport:
    """
    Everything that happened in one tick, in the order it happened.

    Attributes:
        tick: Tick index.
        settlements: Matured locked balances, by venue in registry order and
                     insertion order within a venue.
        outcomes: One outcome per proposed action, in submission order.
        state: Periodic StateReport if this tick was a reporting tick.
    """
    tick: int
    settlements: List[SettlementEvent] = field(default_factory=list)
    outcomes: List[ActionOutcome] = field(default_factory=list)
    state: Optional[StateReport] = None

    @property
    def succeeded(self) -> List[ActionOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def rejected(self) -> List[ActionOutcome]:
        return [o for o in self.outcomes if not o.succeeded]
