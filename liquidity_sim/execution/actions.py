"""
Action, rejection reason and outcome models.

**Conceptual**: An Action is the only way a strategy can affect the
simulation. It is a plain value (kind, source, destination, amount) built by
the strategy each tick and consumed by the executor within the same tick.
The executor answers every action with an ActionOutcome: either the details of
what was applied, or the reason it was rejected.

**Why outcomes instead of exceptions?**
  - A rejected action is a normal event in a simulation (the strategy asked for
    more than was available), not a program error.
  - Outcomes are data: the reporting layer can count, tabulate and render
    them however it likes.
  - A tick never stops halfway because one action failed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ActionKind(str, Enum):
    """
    BRIDGE: move funds from source to destination; pays gas, no surplus,
            locked for the bridging delay.
    EXECUTE: fill order flow funded on source, credited on destination; pays
             gas, earns the execution surplus, locked for the inventory delay.
    """
    BRIDGE = "bridge"
    EXECUTE = "execute"


class RejectionReason(str, Enum):
    SELF_TRANSFER = "self-transfer"
    UNKNOWN_VENUE = "unknown-venue"
    UNKNOWN_ROUTE = "unknown-route"
    INVALID_ACTION = "invalid-action"
    INVALID_AMOUNT = "invalid-amount"
    INSUFFICIENT_SOURCE_FUNDS = "insufficient-source-funds"
    INSUFFICIENT_DESTINATION_CAPACITY = "insufficient-destination-capacity"
    AMOUNT_BELOW_GAS_COST = "amount-below-gas-cost"


@dataclass(frozen=True)
class Action:
    """
    A proposed transfer.

    Attributes:
        kind: ActionKind.BRIDGE or ActionKind.EXECUTE.
        source: Name of the venue funding the action.
        destination: Name of the venue credited (after the lock delay).
        amount: Amount debited from the source balance. Must be >= 0.
        route: Optional route name. Only used in the route topology, to pick
               one of several routes declared between the same two venues.
               When omitted the first declared route for the pair is used.
    """
    kind: ActionKind
    source: str
    destination: str
    amount: float
    route: Optional[str] = None

    @classmethod
    def bridge(cls, source: str, destination: str, amount: float, route: Optional[str] = None) -> "Action":
        return cls(ActionKind.BRIDGE, source, destination, amount, route)

    @classmethod
    def execute(cls, source: str, destination: str, amount: float, route: Optional[str] = None) -> "Action":
        return cls(ActionKind.EXECUTE, source, destination, amount, route)


@dataclass(frozen=True)
class ActionOutcome:
    """
    Result of validating (and possibly applying) one action.

    Attributes:
        tick: Tick the action was submitted in.
        action: The action as submitted.
        reason: None on success, otherwise why it was rejected.
        credited_amount: Amount queued at the destination (net of gas, times
                         surplus for executions). 0.0 when rejected.
        gas_cost: Gas paid. 0.0 when rejected.
        settle_in_ticks: Lock delay of the queued credit. None when rejected.
        route: Name of the route used (route topology only).
        detail: Human-readable description of the rejection, if any.
    """
    tick: int
    action: Action
    reason: Optional[RejectionReason] = None
    credited_amount: float = 0.0
    gas_cost: float = 0.0
    settle_in_ticks: Optional[int] = None
    route: Optional[str] = None
    detail: str = ""

    @property
    def succeeded(self) -> bool:
        return self.reason is None

    @property
    def value_change(self) -> float:
        """
        Change in total value (spendable + locked across venues) caused by
        this action: -gas for a bridge, (amount-gas)*(surplus-1)-gas for an
        execution, 0.0 for a rejection.
        """
        if not self.succeeded:
            return 0.0
        return self.credited_amount - self.action.amount
