"""
Threshold strategy: fire fixed-size actions when funds and capacity allow.

**Conceptual**: The reference scenario drives the simulation with two rules:
bridge 2 from A to B whenever A holds more than 2 and B can absorb it, and
execute 5 of B's order flow, credited on A, whenever B holds more than 5.
ThresholdStrategy generalises that to any list of (kind, source,
destination, amount) rules, each firing when the snapshot shows strictly more
than `amount` of both the source balance and the capacity the action will
consume.

**Why check strictly greater?**
  - It mirrors the reference rules and leaves a margin for gas.
  - The executor re-checks everything anyway; the thresholds only keep the
    strategy from proposing actions that are certain to be rejected.

**Teaching note**: The strategy reads capacity where the executor will
charge it (the destination venue, or the route in the route topology), so
the same rules work in both topologies.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from liquidity_sim.config.seeds import Topology
from liquidity_sim.execution.actions import Action, ActionKind
from liquidity_sim.venues.snapshot import MarketSnapshot


@dataclass(frozen=True)
class ThresholdRule:
    kind: ActionKind
    source: str
    destination: str
    amount: float
    route: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", ActionKind(self.kind))

    def to_action(self) -> Action:
        return Action(self.kind, self.source, self.destination, self.amount, self.route)


def default_rules() -> List[ThresholdRule]:
    """The two rules of the reference A/B/C scenario."""
    return [
        ThresholdRule(ActionKind.BRIDGE, "A", "B", 2.0),
        ThresholdRule(ActionKind.EXECUTE, "B", "A", 5.0),
    ]


class ThresholdStrategy:
    """
    Propose each rule's action when the snapshot shows room for it.

    Args:
        rules: Rules evaluated in order every tick. Defaults to the reference
               scenario's rules.
    """

    def __init__(self, rules: Optional[Iterable[ThresholdRule]] = None):
        self.rules: List[ThresholdRule] = list(rules) if rules is not None else default_rules()

    def propose_actions(self, snapshot: MarketSnapshot) -> Sequence[Action]:
        actions: List[Action] = []
        for rule in self.rules:
            if self._rule_fires(rule, snapshot):
                actions.append(rule.to_action())
        return actions

    def _rule_fires(self, rule: ThresholdRule, snapshot: MarketSnapshot) -> bool:
        source = snapshot.venue(rule.source)
        destination = snapshot.venue(rule.destination)
        if source is None or destination is None:
            return False

        if snapshot.topology is Topology.ROUTE:
            capacity_owner = snapshot.route(rule.source, rule.destination, rule.route)
            if capacity_owner is None:
                return False
        else:
            capacity_owner = destination

        if rule.kind is ActionKind.BRIDGE:
            capacity = capacity_owner.outflow_capacity
        else:
            capacity = capacity_owner.orderflow_capacity

        return source.balance > rule.amount and capacity > rule.amount
