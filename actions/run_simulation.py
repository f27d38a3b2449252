#!/usr/bin/env python3
"""
Run a liquidity flow simulation and print the results.

**Purpose**: This script wires settings, seed data, a strategy and the engine
together, runs the simulation and renders the structured events it produces
as console tables. It is the reporting layer: the engine itself never prints.

**Usage**:
    python actions/run_simulation.py
    python actions/run_simulation.py --ticks 500 --topology route
    python actions/run_simulation.py --uncapped --report-every 50
    python actions/run_simulation.py --venue-seeds scenarios/venues.csv --output-dir data/results

**What this script does**:
  1. Load settings from environment (.env), then apply command line overrides
  2. Load venue/route seeds (CSV files or the built-in A/B/C scenario)
  3. Build the registry and the threshold strategy
  4. Run the simulation
  5. Print initial state, periodic reports, rejection summary, final state
     and metrics
  6. Optionally save state and outcome tables to --output-dir

**Teaching note**: Console formatting lives here, not in the engine, so the
same run can feed a notebook, a CSV file or a dashboard without touching the
simulation code.
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to Python path so we can import liquidity_sim modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from liquidity_sim.analytics.metrics import outcomes_to_frame, summarize_rejections
from liquidity_sim.config.seeds import ConfigurationError, Topology
from liquidity_sim.config.settings import get_settings
from liquidity_sim.data.io import write_outcomes_csv, write_state_report_csv
from liquidity_sim.simulation.engine import SimulationParams, run_simulation
from liquidity_sim.simulation.events import StateReport
from liquidity_sim.strategies.threshold import ThresholdStrategy
from liquidity_sim.venues.registry import VenueRegistry


def parse_args(argv=None):
    """
    Parse command line arguments.

    Every option defaults to the value loaded from the environment, so the
    command line only needs to mention what differs from .env.

    Returns:
        Namespace with attributes: ticks, topology, cap_multiplier, uncapped,
        report_every, venue_seeds, route_seeds, output_dir, verbose.
    """
    parser = argparse.ArgumentParser(
        description="Simulate liquidity flows across venues",
        epilog="""
Examples:
  # Reference scenario, 1000 ticks, capped per-venue capacities
  python actions/run_simulation.py

  # Route topology with uncapped capacity regeneration
  python actions/run_simulation.py --topology route --uncapped

  # Custom scenario, save tables
  python actions/run_simulation.py --venue-seeds scenarios/venues.csv --output-dir data/results
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--ticks", type=int, default=None, help="Number of ticks to simulate")
    parser.add_argument(
        "--topology",
        choices=[t.value for t in Topology],
        default=None,
        help="Who owns capacities: venues or routes",
    )
    parser.add_argument(
        "--cap-multiplier",
        type=float,
        default=None,
        help="Cap capacities at this multiple of their initial value",
    )
    parser.add_argument(
        "--uncapped",
        action="store_true",
        help="Let capacities regenerate without a ceiling",
    )
    parser.add_argument(
        "--report-every",
        type=int,
        default=None,
        help="Print aggregate state every N ticks (0 disables)",
    )
    parser.add_argument("--venue-seeds", type=Path, default=None, help="Venue seed CSV")
    parser.add_argument("--route-seeds", type=Path, default=None, help="Route seed CSV")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory to save final state and outcome tables",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every event")
    return parser.parse_args(argv)


def apply_overrides(settings, args):
    """Return settings with command line values layered on top."""
    overrides = {}
    if args.ticks is not None:
        overrides["ticks"] = args.ticks
    if args.topology is not None:
        overrides["topology"] = Topology(args.topology)
    if args.uncapped:
        overrides["capacity_cap_multiplier"] = None
    elif args.cap_multiplier is not None:
        overrides["capacity_cap_multiplier"] = args.cap_multiplier
    if args.report_every is not None:
        overrides["report_every"] = args.report_every or None
    if args.venue_seeds is not None:
        overrides["venue_seed_path"] = args.venue_seeds
    if args.route_seeds is not None:
        overrides["route_seed_path"] = args.route_seeds
    return replace(settings, **overrides)


def print_state(title: str, report: StateReport) -> None:
    print(title)
    print("-" * 80)
    for venue in report.venues:
        print(
            f"  Venue [{venue.name}]  balance {venue.spendable:>14.6f}"
            f"  + locked {venue.locked:>14.6f}  = {venue.total:>14.6f}"
        )
    print(f"  Total: {report.total:.6f}")
    print("-" * 80)
    print()


def main(argv=None):
    """
    Main entrypoint for a simulation run.

    Returns:
        Process exit code (0 on success, 1 on configuration errors).
    """
    args = parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 80)
    print("Liquidity Flow Simulation")
    print("=" * 80)
    print()

    # ========================================================================
    # Step 1: Settings and seeds
    # ========================================================================
    print("Step 1: Loading settings and seed data...")
    try:
        settings = apply_overrides(get_settings(), args)
        venue_seeds, route_seeds = settings.load_seeds()
        registry = VenueRegistry.from_seeds(venue_seeds, route_seeds)
    except (ConfigurationError, FileNotFoundError) as e:
        print(f"  ✗ {e}")
        return 1
    cap = settings.capacity_cap_multiplier
    print(f"  ✓ {len(registry.venues)} venues, {len(registry.routes)} routes")
    print(f"  ✓ Topology: {settings.topology.value}")
    print(f"  ✓ Capacity cap: {'none' if cap is None else f'{cap}x initial'}")
    print()

    print_state("Initial state:", registry.state_report())

    # ========================================================================
    # Step 2: Run
    # ========================================================================
    print(f"Step 2: Running {settings.ticks} ticks...")
    params = SimulationParams(topology=settings.topology, report_every=settings.report_every)
    try:
        result = run_simulation(registry, ThresholdStrategy(), settings.ticks, params)
    except ConfigurationError as e:
        print(f"  ✗ {e}")
        return 1
    print("  ✓ ..finished.")
    print()

    for report in result.periodic_reports:
        print(f"  ... [{report.tick}] total {report.total:.6f}")
    if result.periodic_reports:
        print()

    # ========================================================================
    # Step 3: Outcomes
    # ========================================================================
    outcomes = outcomes_to_frame(result.tick_reports)
    rejections = summarize_rejections(outcomes)
    print("Step 3: Action outcomes:")
    print("-" * 80)
    print(f"  Succeeded:          {result.metrics['actions_succeeded']:>10,}")
    print(f"  Rejected:           {result.metrics['actions_rejected']:>10,}")
    for reason, count in rejections.items():
        print(f"    {reason:<34} {count:>10,}")
    print("-" * 80)
    print()

    print_state("Final state:", result.final_state)

    # ========================================================================
    # Step 4: Metrics
    # ========================================================================
    metrics = result.metrics
    print("Step 4: Metrics:")
    print("-" * 80)
    print(f"  Initial value:      {metrics['initial_value']:>14.6f}")
    print(f"  Final value:        {metrics['final_value']:>14.6f}")
    print(f"  Value change:       {metrics['value_change']:>14.6f}")
    print(f"  Total return:       {metrics['total_return']:>14.4%}")
    print(f"  Max drawdown:       {metrics['max_drawdown']:>14.4%}")
    print(f"  Gas spent:          {metrics['gas_spent']:>14.6f}")
    print(f"  Surplus created:    {metrics['surplus_created']:>14.6f}")
    print(f"  Settled:            {metrics['settled_total']:>14.6f}")
    print("-" * 80)
    print()

    # ========================================================================
    # Step 5: Save
    # ========================================================================
    if args.output_dir is not None:
        print(f"Step 5: Saving results to {args.output_dir}...")
        state_path = write_state_report_csv(result.final_state, args.output_dir / "final_state.csv")
        print(f"  ✓ Saved final state: {state_path}")
        outcomes_path = write_outcomes_csv(outcomes, args.output_dir / "outcomes.csv")
        print(f"  ✓ Saved outcomes: {outcomes_path}")
        print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
