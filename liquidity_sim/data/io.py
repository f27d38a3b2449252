"""
CSV readers and writers for seed data and run outputs.

**Conceptual**: This module is the only I/O boundary for CSV data. Seed
tables are read here, validated against `data/schemas.py`, and converted into
frozen VenueSeed/RouteSeed records; run outputs (state reports, outcome
tables) are written here. Nothing is ever read back into a running
simulation, so a run's state never persists past the process.

**Rule**: Never call pd.read_csv or df.to_csv directly from the engine or
scripts. Go through these functions so the seed contract stays enforced.
"""

from pathlib import Path
from typing import List

import pandas as pd

from liquidity_sim.config.seeds import ConfigurationError, RouteSeed, VenueSeed
from liquidity_sim.data.schemas import (
    CAP_COLUMNS,
    CAPACITY_COLUMN_DEFAULTS,
    DELAY_COLUMNS,
    SeedSchemaError,
    validate_route_seed_schema,
    validate_venue_seed_schema,
)
from liquidity_sim.simulation.events import StateReport


def _read_csv(path: Path, context: str) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(
            f"Seed CSV not found: {path}. "
            f"Ensure the file exists and the path is correct."
        )
    try:
        return pd.read_csv(path)
    except Exception as e:
        raise SeedSchemaError(f"{context}: Failed to read CSV. Error: {e}")


def _row_kwargs(row: pd.Series, columns) -> dict:
    """Convert one validated row into seed keyword arguments."""
    kwargs = {}
    for col, default in CAPACITY_COLUMN_DEFAULTS.items():
        if col in columns:
            value = float(row[col])
        else:
            value = default
        if col in DELAY_COLUMNS:
            value = int(value)
        kwargs[col] = value
    for col in CAP_COLUMNS:
        if col in columns and pd.notna(row[col]):
            kwargs[col] = float(row[col])
        else:
            kwargs[col] = None
    return kwargs


def read_venue_seeds_csv(path: Path | str) -> List[VenueSeed]:
    """
    Read a venue seed table.

    **Columns**: `name`, `balance` (required); `orderflow_capacity`,
    `orderflow_regen_per_tick`, `outflow_capacity`, `outflow_regen_per_tick`,
    `gas_cost`, `execution_surplus`, `bridging_delay`,
    `inventory_lock_delay`, `orderflow_cap`, `outflow_cap` (optional; blank
    caps mean uncapped).

    Args:
        path: Path to the CSV file.

    Returns:
        VenueSeed records in file order.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        SeedSchemaError: If the table violates the venue seed schema or a
                         row fails seed validation.

    Example:
        >>> seeds = read_venue_seeds_csv("scenarios/venues.csv")
        >>> [s.name for s in seeds]
        ['A', 'B', 'C']
    """
    path = Path(path)
    context = str(path)
    df = _read_csv(path, context)
    validate_venue_seed_schema(df, context=context)

    seeds = []
    for idx, row in df.iterrows():
        try:
            seeds.append(VenueSeed(
                name=str(row['name']).strip(),
                balance=float(row['balance']),
                **_row_kwargs(row, df.columns),
            ))
        except ConfigurationError as e:
            raise SeedSchemaError(f"{context}: row {idx}: {e}")
    return seeds


def read_route_seeds_csv(path: Path | str) -> List[RouteSeed]:
    """
    Read a route seed table.

    **Columns**: `name`, `source`, `destination` (required); the same optional
    numeric columns as venue seeds.

    Args:
        path: Path to the CSV file.

    Returns:
        RouteSeed records in file order (this order decides which route wins
        when several join the same pair of venues).

    Raises:
        FileNotFoundError: If the file doesn't exist.
        SeedSchemaError: If the table violates the route seed schema or a
                         row fails seed validation.
    """
    path = Path(path)
    context = str(path)
    df = _read_csv(path, context)
    validate_route_seed_schema(df, context=context)

    seeds = []
    for idx, row in df.iterrows():
        try:
            seeds.append(RouteSeed(
                name=str(row['name']).strip(),
                source=str(row['source']).strip(),
                destination=str(row['destination']).strip(),
                **_row_kwargs(row, df.columns),
            ))
        except ConfigurationError as e:
            raise SeedSchemaError(f"{context}: row {idx}: {e}")
    return seeds


def write_state_report_csv(report: StateReport, path: Path | str) -> Path:
    """
    Write a StateReport as a per-venue table plus a TOTAL row.

    Returns:
        The path written to. Parent directories are created as needed.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    df = report.to_frame()
    total_row = pd.DataFrame({
        'venue': ['TOTAL'],
        'spendable': [df['spendable'].sum()],
        'locked': [df['locked'].sum()],
        'total': [report.total],
    })
    pd.concat([df, total_row], ignore_index=True).to_csv(path, index=False)
    return path


def write_outcomes_csv(outcomes: pd.DataFrame, path: Path | str) -> Path:
    """
    Write an outcome table (see analytics.metrics.outcomes_to_frame).

    Returns:
        The path written to. Parent directories are created as needed.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    outcomes.to_csv(path, index=False)
    return path
