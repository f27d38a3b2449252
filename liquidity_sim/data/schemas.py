"""
CSV schemas and validation for venue and route seed tables.

**Conceptual**: Seed tables are the data contract between scenario authors and
the engine. Validating them at the I/O boundary means every venue and route
that reaches the registry has a name, numeric parameters and no negative
amounts, and the error message points at the exact column and row.

**Schema rules**:
  - Required columns must be present; optional columns fall back to defaults.
  - Names are non-empty strings and unique within a table.
  - Numeric columns parse as numbers and are non-negative.
  - Cap columns may be blank, meaning "uncapped".
  - Delay columns are whole numbers of ticks.
"""

from typing import Dict, List

import pandas as pd

from liquidity_sim.config.seeds import ConfigurationError


class SeedSchemaError(ConfigurationError):
    """
    Raised when a seed table does not conform to its schema.

    Includes the source (file path) and the offending column/row so the
    scenario can be fixed without guessing.
    """
    pass


VENUE_REQUIRED_COLUMNS = ['name', 'balance']
ROUTE_REQUIRED_COLUMNS = ['name', 'source', 'destination']

# Optional numeric columns shared by venues and routes, with their defaults
CAPACITY_COLUMN_DEFAULTS: Dict[str, float] = {
    'orderflow_capacity': 0.0,
    'orderflow_regen_per_tick': 0.0,
    'outflow_capacity': 0.0,
    'outflow_regen_per_tick': 0.0,
    'gas_cost': 0.0,
    'execution_surplus': 1.0,
    'bridging_delay': 0,
    'inventory_lock_delay': 0,
}

CAP_COLUMNS = ['orderflow_cap', 'outflow_cap']
DELAY_COLUMNS = ['bridging_delay', 'inventory_lock_delay']


def _validate_names(df: pd.DataFrame, column: str, ctx: str) -> None:
    names = df[column]
    blank = names.isna() | (names.astype(str).str.strip() == '')
    if blank.any():
        rows = list(df.index[blank])
        raise SeedSchemaError(f"{ctx}Empty '{column}' in rows {rows}.")


def _validate_numeric(df: pd.DataFrame, columns: List[str], ctx: str, allow_blank: bool) -> None:
    for col in columns:
        if col not in df.columns:
            continue
        values = pd.to_numeric(df[col], errors='coerce')
        bad = values.isna() & df[col].notna()
        if not allow_blank:
            bad = bad | df[col].isna()
        if bad.any():
            rows = list(df.index[bad])
            raise SeedSchemaError(
                f"{ctx}Column '{col}' has non-numeric values in rows {rows}."
            )
        negative = values < 0
        if negative.any():
            rows = list(df.index[negative])
            raise SeedSchemaError(
                f"{ctx}Column '{col}' has negative values in rows {rows}."
            )
        if col in DELAY_COLUMNS:
            fractional = values.notna() & (values != values.round())
            if fractional.any():
                rows = list(df.index[fractional])
                raise SeedSchemaError(
                    f"{ctx}Column '{col}' must hold whole ticks, rows {rows} do not."
                )


def _validate_common(df: pd.DataFrame, required: List[str], ctx: str) -> None:
    missing_cols = set(required) - set(df.columns)
    if missing_cols:
        raise SeedSchemaError(
            f"{ctx}Missing required columns: {sorted(missing_cols)}. "
            f"Expected at least: {required}. "
            f"Found columns: {list(df.columns)}."
        )

    _validate_names(df, 'name', ctx)

    duplicated = df['name'].astype(str).str.strip().duplicated()
    if duplicated.any():
        dupes = sorted(set(df.loc[duplicated, 'name'].astype(str)))
        raise SeedSchemaError(f"{ctx}Duplicate names: {dupes}.")

    _validate_numeric(df, list(CAPACITY_COLUMN_DEFAULTS), ctx, allow_blank=False)
    _validate_numeric(df, CAP_COLUMNS, ctx, allow_blank=True)


def validate_venue_seed_schema(df: pd.DataFrame, context: str | None = None) -> None:
    """
    Validate a venue seed table.

    Args:
        df: Table with at least `name` and `balance` columns.
        context: Optional source description for error messages.

    Raises:
        SeedSchemaError: On any schema violation.
    """
    ctx = f"{context}: " if context else ""
    _validate_common(df, VENUE_REQUIRED_COLUMNS, ctx)
    _validate_numeric(df, ['balance'], ctx, allow_blank=False)


def validate_route_seed_schema(df: pd.DataFrame, context: str | None = None) -> None:
    """
    Validate a route seed table.

    Args:
        df: Table with at least `name`, `source` and `destination` columns.
        context: Optional source description for error messages.

    Raises:
        SeedSchemaError: On any schema violation.
    """
    ctx = f"{context}: " if context else ""
    _validate_common(df, ROUTE_REQUIRED_COLUMNS, ctx)
    _validate_names(df, 'source', ctx)
    _validate_names(df, 'destination', ctx)

    loops = df['source'].astype(str).str.strip() == df['destination'].astype(str).str.strip()
    if loops.any():
        rows = list(df.index[loops])
        raise SeedSchemaError(
            f"{ctx}Routes in rows {rows} have the same source and destination."
        )
