"""
Tick scheduler and simulation driver.

**Conceptual**: The engine is the orchestrator that brings together the
registry (ledger state), the strategy (decisions) and the executor (state
changes). Every tick runs the same fixed sequence:

  1. Replenish: every venue and route capacity regenerates (clamped to its cap).
  2. Strategy: the strategy receives an immutable snapshot and returns actions.
  3. Settle: every locked balance counts down one tick; matured ones become
     spendable, in registry order and insertion order within a venue.
  4. Execute: actions are validated and applied one by one, in submission order.
  5. Report: every `report_every` ticks, an aggregate StateReport is recorded.

**Why separate engine from executor and strategy?**
  - Separation of concerns: the engine owns time, the executor owns state
    changes, the strategy owns decisions.
  - Testability: each piece is tested on its own, the engine with scripted
    strategies.
  - Reproducibility: given the same seeds and the same strategy outputs, a run
    produces exactly the same events, tick for tick.

**Teaching note**: There is no concurrency anywhere in a run. The strategy
returns before the executor touches anything, and the executor applies one
action at a time, so no locking is needed. A multi-threaded driver would have
to serialize whole ticks to keep these guarantees.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from liquidity_sim.config.seeds import ConfigurationError, Topology
from liquidity_sim.execution.executor import ActionExecutor
from liquidity_sim.simulation.events import SettlementEvent, StateReport, TickReport
from liquidity_sim.strategies.base import Strategy
from liquidity_sim.venues.registry import VenueRegistry
from liquidity_sim.analytics.metrics import compute_run_metrics

logger = logging.getLogger(__name__)


@dataclass
class SimulationParams:
    """
    Parameters for a simulation run.

    Attributes:
        topology: Topology.VENUE (capacities owned by venues) or
                  Topology.ROUTE (capacities owned by routes).
        report_every: Record a StateReport every N ticks (tick 0 included).
                      None or 0 disables periodic reports.
    """
    topology: Topology = Topology.VENUE
    report_every: Optional[int] = 100

    def __post_init__(self):
        self.topology = Topology(self.topology)
        if self.report_every is not None and self.report_every < 0:
            raise ConfigurationError(
                f"report_every must be non-negative or None, got {self.report_every}"
            )


@dataclass
class SimulationResult:
    """
    Results from a simulation run.

    Attributes:
        initial_state: Aggregate balances before the first tick.
        final_state: Aggregate balances after the last tick.
        tick_reports: One TickReport per simulated tick.
        periodic_reports: StateReports recorded every `report_every` ticks.
        value_curve: Total value (spendable + locked, all venues) after each
                     tick, indexed by tick.
        metrics: Summary metrics (see analytics.metrics.compute_run_metrics).
        params: The SimulationParams that generated this result.
    """
    initial_state: StateReport
    final_state: StateReport
    tick_reports: List[TickReport] = field(default_factory=list)
    periodic_reports: List[StateReport] = field(default_factory=list)
    value_curve: pd.Series = field(default_factory=lambda: pd.Series(dtype=float, name='total_value'))
    metrics: Dict[str, float] = field(default_factory=dict)
    params: Optional[SimulationParams] = None


class Simulation:
    """
    Discrete-time simulation over a registry of venues and routes.

    Args:
        registry: The registry to simulate. It is mutated in place.
        strategy: Any object implementing the Strategy protocol.
        params: Topology and reporting options. Defaults to SimulationParams().

    Raises:
        ConfigurationError: If the route topology is selected but the
                            registry declares no routes.
    """

    def __init__(
        self,
        registry: VenueRegistry,
        strategy: Strategy,
        params: Optional[SimulationParams] = None,
    ):
        self.registry = registry
        self.strategy = strategy
        self.params = params or SimulationParams()

        if self.params.topology is Topology.ROUTE and not registry.routes:
            raise ConfigurationError(
                "Route topology selected but the registry declares no routes."
            )

        self.executor = ActionExecutor(registry, self.params.topology)
        self._tick = 0

    @property
    def tick(self) -> int:
        """Index of the next tick to simulate."""
        return self._tick

    def step(self) -> TickReport:
        """
        Simulate one tick and return what happened.

        Returns:
            TickReport with settlements, action outcomes and, on reporting
            ticks, a StateReport.
        """
        tick = self._tick
        report = TickReport(tick=tick)

        # Step 1: regenerate capacities
        self.registry.replenish()

        # Step 2: strategy decides against a frozen copy of the ledger
        snapshot = self.registry.snapshot(tick, self.params.topology)
        actions = list(self.strategy.propose_actions(snapshot))

        # Step 3: settle matured locked balances
        for venue in self.registry.venues:
            for amount in venue.settle():
                report.settlements.append(SettlementEvent(tick=tick, venue=venue.name, amount=amount))
                logger.debug("[%d] amount %s now available on %s", tick, amount, venue.name)

        # Step 4: validate and apply actions in submission order
        for action in actions:
            report.outcomes.append(self.executor.execute(action, tick))

        # Step 5: periodic aggregate report
        every = self.params.report_every
        if every and tick % every == 0:
            report.state = self.registry.state_report(tick)
            logger.info("[%d] total value %s", tick, report.state.total)

        self._tick += 1
        return report

    def run(self, ticks: int) -> SimulationResult:
        """
        Simulate `ticks` ticks and collect the results.

        Args:
            ticks: Number of ticks to run (>= 0).

        Returns:
            SimulationResult with initial/final state, per-tick reports,
            periodic reports, value curve and metrics.

        Raises:
            ValueError: If ticks is negative.
        """
        if ticks < 0:
            raise ValueError(f"ticks must be non-negative, got {ticks}")

        initial_state = self.registry.state_report()
        logger.info(
            "Starting simulation: %d ticks, topology=%s, initial value %s",
            ticks, self.params.topology.value, initial_state.total,
        )

        tick_reports: List[TickReport] = []
        periodic_reports: List[StateReport] = []
        values: List[float] = []
        index: List[int] = []

        for _ in range(ticks):
            report = self.step()
            tick_reports.append(report)
            if report.state is not None:
                periodic_reports.append(report.state)
            values.append(self.registry.total_value)
            index.append(report.tick)

        final_state = self.registry.state_report(tick_reports[-1].tick if tick_reports else None)
        logger.info("Finished simulation: final value %s", final_state.total)

        value_curve = pd.Series(data=values, index=index, name='total_value', dtype=float)
        metrics = compute_run_metrics(value_curve, tick_reports, initial_state.total)

        return SimulationResult(
            initial_state=initial_state,
            final_state=final_state,
            tick_reports=tick_reports,
            periodic_reports=periodic_reports,
            value_curve=value_curve,
            metrics=metrics,
            params=self.params,
        )


def run_simulation(
    registry: VenueRegistry,
    strategy: Strategy,
    ticks: int,
    params: Optional[SimulationParams] = None,
) -> SimulationResult:
    """
    Build a Simulation and run it for `ticks` ticks.

    Example:
        >>> from liquidity_sim.config.seeds import default_venue_seeds
        >>> from liquidity_sim.strategies.threshold import ThresholdStrategy
        >>> registry = VenueRegistry.from_seeds(default_venue_seeds())
        >>> result = run_simulation(registry, ThresholdStrategy(), ticks=1000)
        >>> result.final_state.total  # doctest: +SKIP
    """
    return Simulation(registry, strategy, params).run(ticks)
