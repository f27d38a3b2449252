"""
Run analytics for simulation results.

This module turns simulation output into numbers and tables:
  - Value-curve metrics: total return and drawdown of the total value
    (spendable + locked across all venues) tick by tick.
  - Event tables: outcomes and settlements as pandas DataFrames.
  - Accounting: gas burned, execution surplus created, amounts settled and
    how many actions succeeded or were rejected, and why.

Value accounting identity for a run:
    final_value - initial_value = surplus_created - gas_spent
because settlement only moves value from locked to spendable, a bridge burns
its gas, and an execution burns its gas and creates (amount - gas) * (surplus - 1).
"""

from typing import Dict, Iterable, List

import numpy as np
import pandas as pd

from liquidity_sim.execution.actions import ActionKind
from liquidity_sim.simulation.events import TickReport


OUTCOME_COLUMNS = [
    'tick',
    'kind',
    'source',
    'destination',
    'amount',
    'route',
    'succeeded',
    'reason',
    'credited_amount',
    'gas_cost',
    'settle_in_ticks',
    'value_change',
]

SETTLEMENT_COLUMNS = ['tick', 'venue', 'amount']


def _kind_label(kind) -> str:
    # Rejected outcomes may carry a kind that is not an ActionKind
    return kind.value if isinstance(kind, ActionKind) else str(kind)


def compute_total_return(value_curve: pd.Series) -> float:
    """
    Compute the return of total value from the first to the last point.

    **Mathematical**: Given initial value V_0 and final value V_T:
        Total Return = (V_T / V_0) - 1

    Args:
        value_curve: Total value after each tick (must start positive).

    Returns:
        Total return as a decimal (e.g., 0.001 = 0.1% gain). NaN if the curve
        is empty or starts at zero.
    """
    if value_curve.empty:
        return float('nan')
    initial_value = value_curve.iloc[0]
    final_value = value_curve.iloc[-1]
    if initial_value == 0:
        return float('nan')
    return (final_value / initial_value) - 1.0


def compute_drawdown_series(value_curve: pd.Series) -> pd.Series:
    """
    Compute the drawdown series: % drop of total value from its running peak.

    **Mathematical**: drawdown_t = (value_t / max(value_0..value_t)) - 1

    Gas makes every bridge a small loss, so a strategy that only bridges has a
    monotonically falling curve and a drawdown equal to its cumulative gas.

    Args:
        value_curve: Total value after each tick.

    Returns:
        Series of drawdowns (values <= 0), same index as input.
    """
    cumulative_peak = value_curve.cummax()
    return (value_curve / cumulative_peak) - 1.0


def compute_max_drawdown(value_curve: pd.Series) -> float:
    """
    Compute the maximum drawdown (most negative value of the drawdown series).

    Returns:
        Maximum drawdown as a scalar (value <= 0). 0.0 for an empty curve.
    """
    if value_curve.empty:
        return 0.0
    return float(compute_drawdown_series(value_curve).min())


def outcomes_to_frame(tick_reports: Iterable[TickReport]) -> pd.DataFrame:
    """
    Flatten every action outcome into one row.

    Returns:
        DataFrame with OUTCOME_COLUMNS, in tick then submission order.
    """
    rows: List[Dict] = []
    for report in tick_reports:
        for outcome in report.outcomes:
            action = outcome.action
            rows.append({
                'tick': outcome.tick,
                'kind': _kind_label(action.kind),
                'source': action.source,
                'destination': action.destination,
                'amount': action.amount,
                'route': outcome.route,
                'succeeded': outcome.succeeded,
                'reason': outcome.reason.value if outcome.reason is not None else None,
                'credited_amount': outcome.credited_amount,
                'gas_cost': outcome.gas_cost,
                'settle_in_ticks': outcome.settle_in_ticks,
                'value_change': outcome.value_change,
            })
    return pd.DataFrame(rows, columns=OUTCOME_COLUMNS)


def settlements_to_frame(tick_reports: Iterable[TickReport]) -> pd.DataFrame:
    """
    Flatten every settlement event into one row.

    Returns:
        DataFrame with SETTLEMENT_COLUMNS, in the order settlements happened.
    """
    rows = [
        {'tick': event.tick, 'venue': event.venue, 'amount': event.amount}
        for report in tick_reports
        for event in report.settlements
    ]
    return pd.DataFrame(rows, columns=SETTLEMENT_COLUMNS)


def summarize_rejections(outcomes: pd.DataFrame) -> pd.Series:
    """
    Count rejected actions by reason.

    Args:
        outcomes: Frame produced by `outcomes_to_frame`.

    Returns:
        Series indexed by reason value, sorted by count (descending).
        Empty if nothing was rejected.
    """
    if outcomes.empty:
        return pd.Series(dtype='int64', name='count')
    rejected = outcomes.loc[~outcomes['succeeded'].astype(bool), 'reason']
    counts = rejected.value_counts()
    counts.name = 'count'
    return counts


def compute_run_metrics(
    value_curve: pd.Series,
    tick_reports: List[TickReport],
    initial_value: float,
) -> Dict[str, float]:
    """
    Summary metrics for a simulation run.

    Args:
        value_curve: Total value after each tick, indexed by tick.
        tick_reports: Every TickReport of the run.
        initial_value: Total value before the first tick.

    Returns:
        Dictionary with keys: initial_value, final_value, value_change,
        total_return, max_drawdown, gas_spent, surplus_created,
        settled_total, actions_succeeded, actions_rejected, num_ticks.
    """
    outcomes = outcomes_to_frame(tick_reports)
    settlements = settlements_to_frame(tick_reports)

    final_value = float(value_curve.iloc[-1]) if not value_curve.empty else initial_value

    # Prepend the pre-run value so a loss on tick 0 shows up in the drawdown
    full_curve = pd.concat(
        [pd.Series([initial_value], index=[-1]), value_curve]
    ).astype(float)

    if outcomes.empty:
        succeeded = outcomes
    else:
        succeeded = outcomes[outcomes['succeeded'].astype(bool)]

    gas_spent = float(np.sum(succeeded['gas_cost'].to_numpy(dtype=float)))
    executed = succeeded[succeeded['kind'] == ActionKind.EXECUTE.value]
    surplus_created = float(np.sum(
        executed['credited_amount'].to_numpy(dtype=float)
        - (executed['amount'].to_numpy(dtype=float) - executed['gas_cost'].to_numpy(dtype=float))
    ))

    metrics = {
        'initial_value': float(initial_value),
        'final_value': final_value,
        'value_change': final_value - initial_value,
        'total_return': compute_total_return(full_curve),
        'max_drawdown': compute_max_drawdown(full_curve) if initial_value > 0 else 0.0,
        'gas_spent': gas_spent,
        'surplus_created': surplus_created,
        'settled_total': float(np.sum(settlements['amount'].to_numpy(dtype=float))),
        'actions_succeeded': int(len(succeeded)),
        'actions_rejected': int(len(outcomes) - len(succeeded)),
        'num_ticks': int(len(value_curve)),
    }
    return metrics
