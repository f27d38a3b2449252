"""
Tests for strategy implementations.

Strategies are tested against hand-built snapshots from small registries, so
no engine is involved: snapshot in, actions out.
"""

import pytest

from liquidity_sim.config.seeds import RouteSeed, Topology, VenueSeed
from liquidity_sim.execution.actions import Action, ActionKind
from liquidity_sim.strategies.base import IdleStrategy, ScriptedStrategy, Strategy
from liquidity_sim.strategies.threshold import ThresholdRule, ThresholdStrategy, default_rules
from liquidity_sim.venues.registry import VenueRegistry


def make_snapshot(
    a_balance=10.0,
    b_balance=0.0,
    b_outflow=10.0,
    a_orderflow=10.0,
    topology=Topology.VENUE,
    routes=(),
    tick=0,
):
    registry = VenueRegistry.from_seeds(
        [
            VenueSeed(name="A", balance=a_balance, orderflow_capacity=a_orderflow, outflow_capacity=30.0),
            VenueSeed(name="B", balance=b_balance, orderflow_capacity=30.0, outflow_capacity=b_outflow),
        ],
        list(routes),
    )
    return registry.snapshot(tick, topology)


# ============================================================================
# ThresholdStrategy
# ============================================================================

def test_default_rules_reference_scenario():
    rules = default_rules()
    assert rules == [
        ThresholdRule(ActionKind.BRIDGE, "A", "B", 2.0),
        ThresholdRule(ActionKind.EXECUTE, "B", "A", 5.0),
    ]


def test_threshold_bridges_when_source_and_capacity_allow():
    """
    Scenario: A holds 10, B outflow 10, B holds nothing.

    Expected: only the bridge rule fires.
    """
    actions = ThresholdStrategy().propose_actions(make_snapshot())
    assert actions == [Action.bridge("A", "B", 2.0)]


def test_threshold_fires_both_rules_in_order():
    actions = ThresholdStrategy().propose_actions(make_snapshot(b_balance=6.0))
    assert actions == [Action.bridge("A", "B", 2.0), Action.execute("B", "A", 5.0)]


def test_threshold_requires_strictly_greater_balance():
    """A holds exactly 2: the bridge rule does not fire."""
    actions = ThresholdStrategy().propose_actions(make_snapshot(a_balance=2.0))
    assert actions == []


def test_threshold_checks_destination_capacity():
    """B holds 6 but A's order-flow capacity is only 5: execute rule does not fire."""
    actions = ThresholdStrategy().propose_actions(
        make_snapshot(a_balance=0.0, b_balance=6.0, a_orderflow=5.0)
    )
    assert actions == []


def test_threshold_ignores_rules_for_unknown_venues():
    strategy = ThresholdStrategy([ThresholdRule(ActionKind.BRIDGE, "A", "Z", 1.0)])
    assert strategy.propose_actions(make_snapshot()) == []


def test_threshold_route_topology_reads_route_capacity():
    """
    Scenario: route topology, route A->B has outflow 1 while venue B has 10.

    Expected: no bridge, because the route is what the executor would charge.
    """
    routes = [RouteSeed(name="A->B", source="A", destination="B", outflow_capacity=1.0)]
    snapshot = make_snapshot(topology=Topology.ROUTE, routes=routes)

    assert ThresholdStrategy().propose_actions(snapshot) == []


def test_threshold_route_topology_fires_on_route_capacity():
    routes = [RouteSeed(name="A->B", source="A", destination="B", outflow_capacity=3.0)]
    snapshot = make_snapshot(topology=Topology.ROUTE, routes=routes, b_outflow=0.0)

    assert ThresholdStrategy().propose_actions(snapshot) == [Action.bridge("A", "B", 2.0)]


def test_threshold_route_topology_missing_route():
    """No B->A route declared: the execute rule never fires."""
    routes = [RouteSeed(name="A->B", source="A", destination="B", outflow_capacity=0.0)]
    snapshot = make_snapshot(topology=Topology.ROUTE, routes=routes, b_balance=6.0)

    assert ThresholdStrategy().propose_actions(snapshot) == []


def test_threshold_rule_carries_route_name():
    rule = ThresholdRule(ActionKind.BRIDGE, "A", "B", 1.0, route="A->B")
    action = rule.to_action()
    assert action.route == "A->B"
    assert action.kind is ActionKind.BRIDGE


def test_threshold_rule_coerces_string_kind():
    """
    Scenario: B outflow 0, order-flow 30, rule given as the string "bridge".

    Expected: the rule is a bridge rule, reads outflow capacity and does not fire.
    """
    rule = ThresholdRule("bridge", "A", "B", 2.0)
    assert rule.kind is ActionKind.BRIDGE

    snapshot = make_snapshot(b_outflow=0.0)
    assert ThresholdStrategy([rule]).propose_actions(snapshot) == []


def test_threshold_rule_rejects_unknown_kind():
    with pytest.raises(ValueError):
        ThresholdRule("swap", "A", "B", 2.0)


# ============================================================================
# Simple strategies
# ============================================================================

def test_idle_strategy_proposes_nothing():
    assert IdleStrategy().propose_actions(make_snapshot()) == []


def test_scripted_strategy_replays_schedule_and_records_snapshots():
    action = Action.bridge("A", "B", 1.0)
    strategy = ScriptedStrategy({3: [action]})

    assert strategy.propose_actions(make_snapshot(tick=0)) == []
    assert strategy.propose_actions(make_snapshot(tick=3)) == [action]
    assert [s.tick for s in strategy.snapshots] == [0, 3]


@pytest.mark.parametrize("strategy", [IdleStrategy(), ScriptedStrategy({}), ThresholdStrategy()])
def test_strategies_satisfy_protocol(strategy):
    def run_once(s: Strategy):
        return list(s.propose_actions(make_snapshot()))

    assert isinstance(run_once(strategy), list)
