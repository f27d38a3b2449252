"""
Runtime settings for simulation runs.

**Conceptual**: This module provides a strongly-typed settings object loaded
from environment variables (via .env files). Settings are validated at
startup, so a typo in the topology or a negative tick count fails fast with a
clear message instead of producing a strange run.

**Why centralized config?**
  - Single source of truth for run options (ticks, topology, caps, seed files).
  - Easy to test (construct SimulationSettings directly, or monkeypatch env).
  - Scenario files are referenced by path, so numbers stay out of code.

**Environment variables**:
  - LIQUIDITY_SIM_TICKS (default 1000)
  - LIQUIDITY_SIM_REPORT_EVERY (default 100; "0" or "none" disables)
  - LIQUIDITY_SIM_TOPOLOGY ("venue" or "route", default "venue")
  - LIQUIDITY_SIM_CAPACITY_CAP_MULTIPLIER (default 1.5; "none" = uncapped)
  - LIQUIDITY_SIM_VENUE_SEEDS (optional path to a venue seed CSV)
  - LIQUIDITY_SIM_ROUTE_SEEDS (optional path to a route seed CSV)

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from liquidity_sim.config.seeds import (
    DEFAULT_CAPACITY_CAP_MULTIPLIER,
    ConfigurationError,
    RouteSeed,
    Topology,
    VenueSeed,
    apply_capacity_cap_multiplier,
    default_venue_seeds,
    routes_from_venue_seeds,
)
from liquidity_sim.data.io import read_route_seeds_csv, read_venue_seeds_csv

# Load .env from project root (dev/local environments)
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


_NONE_VALUES = {"", "none", "null", "off"}


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got: {raw}")


def _parse_optional_float(name: str, raw: str) -> Optional[float]:
    if raw.strip().lower() in _NONE_VALUES:
        return None
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number or 'none', got: {raw}")


@dataclass(frozen=True)
class SimulationSettings:
    """
    Configuration for a simulation run.

    Attributes:
        ticks: Number of ticks to simulate. Must be non-negative.
        report_every: Periodic StateReport interval in ticks (None = off).
        topology: Topology.VENUE or Topology.ROUTE.
        capacity_cap_multiplier: Caps capacities at this multiple of their
                                 initial value. None = uncapped.
        venue_seed_path: Optional venue seed CSV. None = built-in A/B/C scenario.
        route_seed_path: Optional route seed CSV. None = one derived route per
                         ordered venue pair (route topology only).
    """
    ticks: int = 1000
    report_every: Optional[int] = 100
    topology: Topology = Topology.VENUE
    capacity_cap_multiplier: Optional[float] = DEFAULT_CAPACITY_CAP_MULTIPLIER
    venue_seed_path: Optional[Path] = None
    route_seed_path: Optional[Path] = None

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.ticks < 0:
            raise ConfigurationError(f"ticks must be non-negative, got: {self.ticks}")
        if self.report_every is not None and self.report_every < 0:
            raise ConfigurationError(
                f"report_every must be non-negative, got: {self.report_every}"
            )
        try:
            object.__setattr__(self, "topology", Topology(self.topology))
        except ValueError:
            raise ConfigurationError(
                f"topology must be one of {[t.value for t in Topology]}, got: {self.topology!r}"
            )
        if self.capacity_cap_multiplier is not None and self.capacity_cap_multiplier < 1.0:
            raise ConfigurationError(
                f"capacity_cap_multiplier must be >= 1.0 or None, got: {self.capacity_cap_multiplier}"
            )

    @classmethod
    def from_env(cls) -> "SimulationSettings":
        """
        Load simulation settings from environment variables.

        Returns:
            SimulationSettings with values loaded from environment.

        Raises:
            ConfigurationError: If a variable is present but malformed.

        Usage example:
            >>> # In .env file:
            >>> # LIQUIDITY_SIM_TOPOLOGY=route
            >>> # LIQUIDITY_SIM_CAPACITY_CAP_MULTIPLIER=none
            >>>
            >>> settings = SimulationSettings.from_env()
            >>> settings.topology  # Topology.ROUTE
        """
        ticks = _parse_int("LIQUIDITY_SIM_TICKS", os.getenv("LIQUIDITY_SIM_TICKS", "1000"))

        report_raw = os.getenv("LIQUIDITY_SIM_REPORT_EVERY", "100")
        if report_raw.strip().lower() in _NONE_VALUES:
            report_every = None
        else:
            report_every = _parse_int("LIQUIDITY_SIM_REPORT_EVERY", report_raw) or None

        topology = os.getenv("LIQUIDITY_SIM_TOPOLOGY", Topology.VENUE.value).strip().lower()

        cap_multiplier = _parse_optional_float(
            "LIQUIDITY_SIM_CAPACITY_CAP_MULTIPLIER",
            os.getenv("LIQUIDITY_SIM_CAPACITY_CAP_MULTIPLIER", str(DEFAULT_CAPACITY_CAP_MULTIPLIER)),
        )

        venue_path = os.getenv("LIQUIDITY_SIM_VENUE_SEEDS", "").strip()
        route_path = os.getenv("LIQUIDITY_SIM_ROUTE_SEEDS", "").strip()

        return cls(
            ticks=ticks,
            report_every=report_every,
            topology=topology,
            capacity_cap_multiplier=cap_multiplier,
            venue_seed_path=Path(venue_path) if venue_path else None,
            route_seed_path=Path(route_path) if route_path else None,
        )

    def load_seeds(self) -> Tuple[List[VenueSeed], List[RouteSeed]]:
        """
        Resolve the venue and route seeds these settings describe.

        **Conceptual**: Seed CSVs win over the built-in scenario. The cap
        multiplier only applies to seeds without explicit caps in their file;
        the built-in scenario is always capped by the multiplier. Routes are
        only needed in the route topology; when no route file is given they
        are derived from the venues.

        Returns:
            (venue_seeds, route_seeds). route_seeds is empty in the venue
            topology unless a route file was given.
        """
        if self.venue_seed_path is not None:
            venue_seeds = _fill_missing_caps(
                read_venue_seeds_csv(self.venue_seed_path), self.capacity_cap_multiplier
            )
        else:
            venue_seeds = default_venue_seeds(self.capacity_cap_multiplier)

        if self.route_seed_path is not None:
            route_seeds = _fill_missing_caps(
                read_route_seeds_csv(self.route_seed_path), self.capacity_cap_multiplier
            )
        elif self.topology is Topology.ROUTE:
            route_seeds = routes_from_venue_seeds(venue_seeds)
        else:
            route_seeds = []

        return venue_seeds, route_seeds


def _fill_missing_caps(seeds, multiplier: Optional[float]) -> list:
    result = []
    for seed in seeds:
        if multiplier is not None and seed.orderflow_cap is None and seed.outflow_cap is None:
            seed = apply_capacity_cap_multiplier([seed], multiplier)[0]
        result.append(seed)
    return result


_default_settings: Optional[SimulationSettings] = None


def get_settings() -> SimulationSettings:
    """
    Get the global settings singleton, loading it from the environment on
    first use.

    **Teaching note**: Singletons are convenient for scripts but hide
    dependencies. Library code takes settings (or the seeds and params derived
    from them) as arguments; only entry points call get_settings().
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = SimulationSettings.from_env()

    return _default_settings


def reset_settings():
    """Reset the global settings singleton (for testing)."""
    global _default_settings
    _default_settings = None
