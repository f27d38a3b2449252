"""
liquidity_sim – Main entry point.

Runs the reference A/B/C scenario for 1000 ticks with the threshold strategy
and prints total value before and after.
"""

from liquidity_sim.config.seeds import default_venue_seeds
from liquidity_sim.simulation.engine import run_simulation
from liquidity_sim.strategies.threshold import ThresholdStrategy
from liquidity_sim.venues.registry import VenueRegistry


def main() -> None:
    """Run the reference scenario and print a one-line summary."""
    registry = VenueRegistry.from_seeds(default_venue_seeds())
    result = run_simulation(registry, ThresholdStrategy(), ticks=1000)
    print(
        f"Total value: {result.initial_state.total:.6f} -> {result.final_state.total:.6f} "
        f"({result.metrics['actions_succeeded']} actions applied, "
        f"{result.metrics['actions_rejected']} rejected)"
    )


if __name__ == "__main__":
    main()
