"""
Tests for liquidity_sim/analytics/metrics.py

These tests use hand-crafted value curves and tick reports where expected
values are easy to verify by hand.
"""

import numpy as np
import pandas as pd

from liquidity_sim.analytics.metrics import (
    OUTCOME_COLUMNS,
    SETTLEMENT_COLUMNS,
    compute_drawdown_series,
    compute_max_drawdown,
    compute_run_metrics,
    compute_total_return,
    outcomes_to_frame,
    settlements_to_frame,
    summarize_rejections,
)
from liquidity_sim.execution.actions import Action, ActionOutcome, RejectionReason
from liquidity_sim.simulation.events import SettlementEvent, TickReport


def make_tick_reports():
    """
    Two ticks:
      - tick 0: bridge 2 (gas 0.1, credited 1.9), execute 4 rejected
      - tick 1: execute 3 (gas 0.1, surplus 1.1 -> credited 3.19), settlement of 1.9
    """
    bridge = ActionOutcome(
        tick=0,
        action=Action.bridge("A", "B", 2.0),
        credited_amount=1.9,
        gas_cost=0.1,
        settle_in_ticks=1,
    )
    rejected = ActionOutcome(
        tick=0,
        action=Action.execute("A", "B", 4.0),
        reason=RejectionReason.INSUFFICIENT_SOURCE_FUNDS,
        detail="balance too low",
    )
    execute = ActionOutcome(
        tick=1,
        action=Action.execute("B", "A", 3.0),
        credited_amount=(3.0 - 0.1) * 1.1,
        gas_cost=0.1,
        settle_in_ticks=2,
    )
    return [
        TickReport(tick=0, outcomes=[bridge, rejected]),
        TickReport(
            tick=1,
            settlements=[SettlementEvent(tick=1, venue="B", amount=1.9)],
            outcomes=[execute],
        ),
    ]


def test_compute_total_return_simple_case():
    """Value 10 -> 10.5: 5% gain."""
    curve = pd.Series([10.0, 10.2, 10.5])
    assert np.isclose(compute_total_return(curve), 0.05)


def test_compute_total_return_undefined_cases():
    assert np.isnan(compute_total_return(pd.Series([], dtype=float)))
    assert np.isnan(compute_total_return(pd.Series([0.0, 1.0])))


def test_compute_drawdown_series():
    """Peak 10, trough 9: drawdown -10%, recovers to 0 at new peak."""
    curve = pd.Series([10.0, 9.0, 9.5, 11.0])
    drawdown = compute_drawdown_series(curve)

    assert np.allclose(drawdown.values, [0.0, -0.1, -0.05, 0.0])
    assert np.isclose(compute_max_drawdown(curve), -0.1)


def test_compute_max_drawdown_empty():
    assert compute_max_drawdown(pd.Series([], dtype=float)) == 0.0


def test_outcomes_to_frame_one_row_per_outcome():
    frame = outcomes_to_frame(make_tick_reports())

    assert list(frame.columns) == OUTCOME_COLUMNS
    assert len(frame) == 3
    assert list(frame['kind']) == ['bridge', 'execute', 'execute']
    assert list(frame['succeeded']) == [True, False, True]
    assert frame.loc[1, 'reason'] == RejectionReason.INSUFFICIENT_SOURCE_FUNDS.value
    assert np.isclose(frame.loc[0, 'value_change'], -0.1)
    assert frame.loc[1, 'value_change'] == 0.0


def test_outcomes_to_frame_empty():
    frame = outcomes_to_frame([TickReport(tick=0)])
    assert frame.empty
    assert list(frame.columns) == OUTCOME_COLUMNS


def test_settlements_to_frame():
    frame = settlements_to_frame(make_tick_reports())

    assert list(frame.columns) == SETTLEMENT_COLUMNS
    assert frame.to_dict('records') == [{'tick': 1, 'venue': 'B', 'amount': 1.9}]


def test_summarize_rejections_counts_by_reason():
    counts = summarize_rejections(outcomes_to_frame(make_tick_reports()))

    assert counts.name == 'count'
    assert counts.to_dict() == {RejectionReason.INSUFFICIENT_SOURCE_FUNDS.value: 1}


def test_summarize_rejections_empty():
    counts = summarize_rejections(outcomes_to_frame([]))
    assert counts.empty


def test_compute_run_metrics_accounting():
    """
    Gas: 0.1 + 0.1 = 0.2
    Surplus: (3 - 0.1) * 0.1 = 0.29
    Value change = 0.29 - 0.2 = 0.09
    """
    reports = make_tick_reports()
    curve = pd.Series([9.9, 9.99], index=[0, 1])

    metrics = compute_run_metrics(curve, reports, initial_value=10.0)

    assert np.isclose(metrics['gas_spent'], 0.2)
    assert np.isclose(metrics['surplus_created'], 0.29)
    assert np.isclose(metrics['value_change'], -0.01)
    assert np.isclose(metrics['settled_total'], 1.9)
    assert metrics['actions_succeeded'] == 2
    assert metrics['actions_rejected'] == 1
    assert metrics['num_ticks'] == 2
    # Initial value is part of the drawdown window: 10 -> 9.9 is -1%
    assert np.isclose(metrics['max_drawdown'], -0.01)
    assert np.isclose(metrics['total_return'], -0.001)


def test_compute_run_metrics_no_ticks():
    metrics = compute_run_metrics(pd.Series([], dtype=float), [], initial_value=10.0)

    assert metrics['final_value'] == 10.0
    assert metrics['value_change'] == 0.0
    assert metrics['gas_spent'] == 0.0
    assert metrics['actions_succeeded'] == 0
    assert metrics['num_ticks'] == 0
