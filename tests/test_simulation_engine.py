"""
Tests for the tick scheduler and simulation driver.

This module tests:
  - The per-tick order: replenish, strategy snapshot, settle, execute, report.
  - Settlement timing (a lock with delay D settles exactly D ticks later).
  - Value conservation across a run.
  - Capacity caps and uncapped growth.
  - Periodic reporting and determinism.

The reference A/B/C scenario is used where hand-calculated values are needed.
"""

import pandas as pd
import pytest

from liquidity_sim.analytics.metrics import outcomes_to_frame, settlements_to_frame
from liquidity_sim.config.seeds import (
    ConfigurationError,
    Topology,
    VenueSeed,
    default_venue_seeds,
    routes_from_venue_seeds,
)
from liquidity_sim.execution.actions import Action, RejectionReason
from liquidity_sim.simulation.engine import Simulation, SimulationParams, run_simulation
from liquidity_sim.strategies.base import IdleStrategy, ScriptedStrategy
from liquidity_sim.strategies.threshold import ThresholdStrategy
from liquidity_sim.venues.registry import VenueRegistry


def reference_registry(capacity_cap_multiplier=1.5) -> VenueRegistry:
    return VenueRegistry.from_seeds(default_venue_seeds(capacity_cap_multiplier))


# ============================================================================
# Settlement timing
# ============================================================================

def test_bridge_settles_exactly_after_bridging_delay():
    """
    Scenario:
      - Reference scenario, bridge(A -> B, 2) at tick 0
      - A's bridging delay is 4, gas 0.0001

    Expected:
      - After tick 0: A balance 8, B locked 1.9999, B spendable 0
      - Ticks 1-3: B spendable still 0
      - Tick 4: one SettlementEvent for B of 1.9999, B spendable 1.9999
    """
    registry = reference_registry()
    strategy = ScriptedStrategy({0: [Action.bridge("A", "B", 2.0)]})
    sim = Simulation(registry, strategy, SimulationParams(report_every=None))

    first = sim.step()
    assert first.outcomes[0].succeeded
    assert registry.get_venue("A").balance == pytest.approx(8.0)
    assert registry.get_venue("B").locked.total == pytest.approx(1.9999)

    for _ in range(3):
        report = sim.step()
        assert report.settlements == []
        assert registry.get_venue("B").balance == 0.0

    fourth = sim.step()
    assert fourth.tick == 4
    assert len(fourth.settlements) == 1
    event = fourth.settlements[0]
    assert event.tick == 4
    assert event.venue == "B"
    assert event.amount == pytest.approx(1.9999)
    assert registry.get_venue("B").balance == pytest.approx(1.9999)
    assert len(registry.get_venue("B").locked) == 0


def test_strategy_snapshot_taken_before_settlement():
    """On the settling tick the strategy still sees the amount as locked."""
    registry = reference_registry()
    strategy = ScriptedStrategy({0: [Action.bridge("A", "B", 2.0)]})
    Simulation(registry, strategy, SimulationParams(report_every=None)).run(5)

    tick4 = strategy.snapshots[4]
    assert tick4.venue("B").balance == 0.0
    assert tick4.venue("B").locked_total == pytest.approx(1.9999)
    assert tick4.venue("B").locked[0].remaining_ticks == 1


def test_strategy_snapshot_taken_after_replenish():
    """Tick 0 snapshot already includes one regeneration step: B outflow 10 + 0.4."""
    registry = reference_registry()
    strategy = ScriptedStrategy({})
    Simulation(registry, strategy).run(1)

    assert strategy.snapshots[0].tick == 0
    assert strategy.snapshots[0].venue("B").outflow_capacity == pytest.approx(10.4)


def test_funds_settled_this_tick_are_spendable_by_this_tick_actions():
    """
    Settlement runs before execution, so an action proposed on the settling
    tick may spend the matured amount even though the snapshot did not show it.
    """
    registry = reference_registry()
    strategy = ScriptedStrategy({
        0: [Action.bridge("A", "B", 2.0)],
        4: [Action.bridge("B", "C", 1.5)],
    })
    result = Simulation(registry, strategy, SimulationParams(report_every=None)).run(5)

    assert result.tick_reports[4].outcomes[0].succeeded
    assert registry.get_venue("B").balance == pytest.approx(1.9999 - 1.5)


def test_settlement_leaves_total_value_unchanged():
    registry = reference_registry()
    strategy = ScriptedStrategy({0: [Action.bridge("A", "B", 2.0)]})
    result = Simulation(registry, strategy, SimulationParams(report_every=None)).run(6)

    # Only tick 0 changes value (gas); the settlement on tick 4 moves value only
    curve = result.value_curve
    assert curve.loc[0] == pytest.approx(10.0 - 0.0001)
    assert list(curve.loc[1:]) == pytest.approx([curve.loc[0]] * 5)


# ============================================================================
# Conservation and capacities
# ============================================================================

def test_idle_strategy_keeps_total_value_constant():
    registry = reference_registry()
    result = run_simulation(registry, IdleStrategy(), ticks=50)

    assert result.initial_state.total == pytest.approx(10.0)
    assert result.final_state.total == pytest.approx(10.0)
    assert result.metrics['actions_succeeded'] == 0
    assert result.metrics['max_drawdown'] == 0.0


def assert_counters_within_bounds(owners):
    for owner in owners:
        for counter in (owner.orderflow, owner.outflow):
            assert 0.0 <= counter.current <= counter.cap + 1e-12


@pytest.mark.parametrize("topology", [Topology.VENUE, Topology.ROUTE])
def test_capacities_stay_between_zero_and_cap(topology):
    """
    With the 1.5x cap, no venue or route counter ever drops below zero or
    goes above 1.5x its initial value, in either topology.
    """
    seeds = default_venue_seeds()
    registry = VenueRegistry.from_seeds(seeds, routes_from_venue_seeds(seeds))
    sim = Simulation(
        registry, ThresholdStrategy(), SimulationParams(topology=topology, report_every=None)
    )

    for _ in range(300):
        sim.step()
        assert_counters_within_bounds(registry.venues)
        assert_counters_within_bounds(registry.routes)


def test_uncapped_capacities_grow_linearly():
    """A order-flow: 10 + 10 * 0.64 = 16.4 after 10 idle ticks."""
    registry = reference_registry(capacity_cap_multiplier=None)
    run_simulation(registry, IdleStrategy(), ticks=10)

    assert registry.get_venue("A").orderflow.current == pytest.approx(16.4)
    assert registry.get_venue("C").outflow.current == pytest.approx(30.0 + 10 * 0.61)


def test_value_identity_over_reference_run():
    """
    final - initial = surplus created - gas spent, for the whole run.
    """
    registry = reference_registry()
    result = run_simulation(registry, ThresholdStrategy(), ticks=300)
    metrics = result.metrics

    assert metrics['actions_succeeded'] > 0
    assert metrics['final_value'] - metrics['initial_value'] == pytest.approx(
        metrics['surplus_created'] - metrics['gas_spent']
    )
    assert metrics['final_value'] == pytest.approx(result.final_state.total)
    assert registry.total_value == pytest.approx(result.final_state.total)


def test_balances_never_negative():
    registry = reference_registry()
    sim = Simulation(registry, ThresholdStrategy(), SimulationParams(report_every=None))
    for _ in range(300):
        sim.step()
        assert all(v.balance >= 0 for v in registry.venues)
        assert all(e.remaining_ticks >= 0 for v in registry.venues for e in v.locked)


# ============================================================================
# Reporting
# ============================================================================

def test_periodic_reports_every_n_ticks():
    registry = reference_registry()
    result = run_simulation(
        registry, ThresholdStrategy(), ticks=250, params=SimulationParams(report_every=100)
    )

    assert [r.tick for r in result.periodic_reports] == [0, 100, 200]
    assert result.tick_reports[100].state is result.periodic_reports[1]
    assert result.tick_reports[99].state is None


def test_periodic_reports_disabled():
    result = run_simulation(
        reference_registry(), IdleStrategy(), ticks=20, params=SimulationParams(report_every=None)
    )
    assert result.periodic_reports == []


def test_value_curve_indexed_by_tick():
    result = run_simulation(reference_registry(), IdleStrategy(), ticks=5)

    assert list(result.value_curve.index) == [0, 1, 2, 3, 4]
    assert result.value_curve.name == 'total_value'
    assert result.metrics['num_ticks'] == 5


def test_zero_ticks_returns_initial_state():
    registry = reference_registry()
    result = run_simulation(registry, ThresholdStrategy(), ticks=0)

    assert result.tick_reports == []
    assert result.value_curve.empty
    assert result.final_state.total == pytest.approx(result.initial_state.total)


def test_negative_ticks_rejected():
    with pytest.raises(ValueError):
        run_simulation(reference_registry(), IdleStrategy(), ticks=-1)


def test_negative_report_every_rejected():
    with pytest.raises(ConfigurationError):
        SimulationParams(report_every=-5)


# ============================================================================
# Topology and determinism
# ============================================================================

def test_route_topology_without_routes_rejected():
    with pytest.raises(ConfigurationError, match="no routes"):
        Simulation(reference_registry(), IdleStrategy(), SimulationParams(topology=Topology.ROUTE))


def test_route_topology_run_uses_route_capacities():
    seeds = default_venue_seeds()
    registry = VenueRegistry.from_seeds(seeds, routes_from_venue_seeds(seeds))
    strategy = ScriptedStrategy({0: [Action.bridge("A", "B", 2.0)]})

    result = run_simulation(
        registry, strategy, ticks=1, params=SimulationParams(topology="route")
    )

    outcome = result.tick_reports[0].outcomes[0]
    assert outcome.succeeded
    assert outcome.route == "A->B"
    # Route A->B: outflow 10 (from B) + 0.4 regen - 2
    assert registry.get_route("A", "B").outflow.current == pytest.approx(8.4)
    # Venue counters regenerate but are not charged
    assert registry.get_venue("B").outflow.current == pytest.approx(10.4)


def test_runs_are_deterministic():
    """Same seeds and strategy produce identical outcome and settlement tables."""
    first = run_simulation(reference_registry(), ThresholdStrategy(), ticks=200)
    second = run_simulation(reference_registry(), ThresholdStrategy(), ticks=200)

    pd.testing.assert_frame_equal(
        outcomes_to_frame(first.tick_reports), outcomes_to_frame(second.tick_reports)
    )
    pd.testing.assert_frame_equal(
        settlements_to_frame(first.tick_reports), settlements_to_frame(second.tick_reports)
    )
    pd.testing.assert_series_equal(first.value_curve, second.value_curve)


def test_actions_applied_in_submission_order():
    """Two bridges into a venue with room for one: the first listed wins."""
    registry = VenueRegistry.from_seeds([
        VenueSeed(name="A", balance=10.0),
        VenueSeed(name="B", outflow_capacity=3.0),
        VenueSeed(name="C", outflow_capacity=0.0),
    ])
    strategy = ScriptedStrategy({0: [
        Action.bridge("A", "B", 2.0),
        Action.bridge("A", "B", 2.0),
    ]})

    report = Simulation(registry, strategy).step()

    assert [o.succeeded for o in report.outcomes] == [True, False]
    assert len(report.rejected) == 1


def test_strategy_exception_propagates():
    class Broken:
        def propose_actions(self, snapshot):
            raise RuntimeError("boom")

    sim = Simulation(reference_registry(), Broken())
    with pytest.raises(RuntimeError, match="boom"):
        sim.step()


def test_invalid_action_mid_tick_is_rejected_and_later_actions_run():
    """
    Scenario: tick 0 proposes bridge A->B 2, an unknown "swap" action, then
    bridge A->C 1.

    Expected:
      - The swap is reported as a rejection; nothing is raised
      - Both bridges are applied (A balance 7, C locked 0.9999)
      - The tick counter advances, so the next step is tick 1
    """
    registry = reference_registry()
    strategy = ScriptedStrategy({0: [
        Action.bridge("A", "B", 2.0),
        Action("swap", "A", "B", 1.0),
        Action.bridge("A", "C", 1.0),
    ]})
    sim = Simulation(registry, strategy, SimulationParams(report_every=None))

    report = sim.step()

    assert [o.succeeded for o in report.outcomes] == [True, False, True]
    assert report.outcomes[1].reason is RejectionReason.INVALID_ACTION
    assert registry.get_venue("A").balance == pytest.approx(7.0)
    assert registry.get_venue("C").locked.total == pytest.approx(0.9999)
    assert sim.tick == 1

    frame = outcomes_to_frame([report])
    assert list(frame['kind']) == ['bridge', 'swap', 'bridge']
