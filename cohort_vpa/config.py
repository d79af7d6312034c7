"""Configuration system for cohort reconstruction.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → scenario override → sweep overrides

Sections map 1:1 to YAML top-level keys; unknown keys are ignored and
unspecified sections take their defaults. Validation raises
ConfigurationError before any computation starts.

Example YAML::

    analysis:
      data_type: length
      analysis_type: CA
    mortality:
      M: 0.28
      terminal_F: 0.28
    length_weight:
      a: 0.00001
      b: 3.0
    growth:
      Linf: 130.0
      K: 0.1
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from cohort_vpa.errors import ConfigurationError
from cohort_vpa.types import AnalysisType, DataType


# Step sizes for the fishing-mortality grid search, coarse to fine
DEFAULT_SOLVER_STEPS = [1e-1, 1e-2, 1e-3, 1e-4, 1e-5, 1e-6, 1e-7]
DEFAULT_F_MAX = 10.0


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class AnalysisSection:
    """Which reconstruction to run."""
    data_type: str = "age"        # 'age' or 'length'
    analysis_type: str = "CA"     # 'VPA' or 'CA'


@dataclass
class MortalitySection:
    """Mortality assumptions."""
    M: float = 0.2                # Natural mortality (yr⁻¹)
    terminal_F: float = 0.5       # F assumed at the last sampled class (yr⁻¹)
    catch_correction_factor: Optional[float] = None  # None = catch used as given


@dataclass
class LengthWeightSection:
    """Length–weight relationship W = a · L^b.

    For age data the midpoint (age) is used in place of length, as the
    classical worked examples do.
    """
    a: float = 0.01
    b: float = 3.0


@dataclass
class GrowthSection:
    """Von Bertalanffy growth; required for length-based cohort analysis."""
    Linf: Optional[float] = None  # Asymptotic length (cm)
    K: Optional[float] = None     # Growth coefficient (yr⁻¹)
    t0: float = 0.0               # Theoretical age at zero length (yr)


@dataclass
class SolverSection:
    """Grid-search controls for classical VPA."""
    steps: List[float] = field(default_factory=lambda: list(DEFAULT_SOLVER_STEPS))
    F_max: float = DEFAULT_F_MAX  # Upper bound on F; reaching it is flagged


@dataclass
class OutputSection:
    """Output control."""
    tons_divisor: float = 1000.0  # kg → t for biomass and yield


@dataclass
class CohortConfig:
    """Complete cohort-reconstruction configuration.

    Load from YAML via `load_config()`. Sections map 1:1 to YAML top-level keys.
    """
    analysis: AnalysisSection = field(default_factory=AnalysisSection)
    mortality: MortalitySection = field(default_factory=MortalitySection)
    length_weight: LengthWeightSection = field(default_factory=LengthWeightSection)
    growth: GrowthSection = field(default_factory=GrowthSection)
    solver: SolverSection = field(default_factory=SolverSection)
    output: OutputSection = field(default_factory=OutputSection)


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Args:
        base: Base dictionary (modified in place).
        override: Override dictionary.

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return section_cls(**filtered)


_SECTION_MAP = {
    'analysis': AnalysisSection,
    'mortality': MortalitySection,
    'length_weight': LengthWeightSection,
    'growth': GrowthSection,
    'solver': SolverSection,
    'output': OutputSection,
}


def _yaml_to_config(data: Dict) -> CohortConfig:
    """Convert a merged YAML dict to a CohortConfig."""
    sections = {}
    for key, cls in _SECTION_MAP.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
    return CohortConfig(**sections)


def _require_positive(value: Optional[float], name: str) -> None:
    if value is None or not value > 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")


def validate_config(config: CohortConfig) -> None:
    """Validate configuration constraints. Raises ConfigurationError on failure.

    Checks:
      - data_type / analysis_type are known, and the pair is supported
      - Mortality and correction parameters are positive
      - Growth parameters are present and positive for length-based CA
      - Solver step sequence is positive and strictly decreasing
    """
    valid_data_types = {d.value for d in DataType}
    if config.analysis.data_type not in valid_data_types:
        raise ConfigurationError(
            f"analysis.data_type must be one of {sorted(valid_data_types)}, "
            f"got '{config.analysis.data_type}'"
        )
    valid_analysis_types = {a.value for a in AnalysisType}
    if config.analysis.analysis_type not in valid_analysis_types:
        raise ConfigurationError(
            f"analysis.analysis_type must be one of {sorted(valid_analysis_types)}, "
            f"got '{config.analysis.analysis_type}'"
        )

    m = config.mortality
    _require_positive(m.M, "mortality.M")
    _require_positive(m.terminal_F, "mortality.terminal_F")
    if m.catch_correction_factor is not None:
        _require_positive(m.catch_correction_factor,
                          "mortality.catch_correction_factor")

    is_length = config.analysis.data_type == DataType.LENGTH.value
    if is_length and config.analysis.analysis_type == AnalysisType.VPA.value:
        raise ConfigurationError(
            "analysis_type 'VPA' is not available for length data; "
            "use analysis_type 'CA'"
        )
    if is_length:
        g = config.growth
        if g.Linf is None or g.K is None:
            raise ConfigurationError(
                "growth.Linf and growth.K are required for length-based "
                "cohort analysis"
            )
        _require_positive(g.Linf, "growth.Linf")
        _require_positive(g.K, "growth.K")

    s = config.solver
    if len(s.steps) == 0:
        raise ConfigurationError("solver.steps must not be empty")
    if any(step <= 0 for step in s.steps):
        raise ConfigurationError(
            f"solver.steps must all be positive, got {s.steps}"
        )
    if any(b >= a for a, b in zip(s.steps, s.steps[1:])):
        raise ConfigurationError(
            f"solver.steps must be strictly decreasing, got {s.steps}"
        )
    _require_positive(s.F_max, "solver.F_max")
    _require_positive(config.output.tons_divisor, "output.tons_divisor")


def load_config(
    base_path: Union[str, Path],
    scenario_path: Optional[Union[str, Path]] = None,
    sweep_overrides: Optional[Dict] = None,
) -> CohortConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → scenario → sweep overrides.
    Each layer overrides only the fields it specifies.

    Args:
        base_path: Path to base configuration YAML.
        scenario_path: Optional scenario override YAML (skipped if missing).
        sweep_overrides: Optional dict of parameter sweep overrides.

    Returns:
        Validated CohortConfig.

    Raises:
        FileNotFoundError: If base_path doesn't exist.
        ConfigurationError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if scenario_path is not None:
        scenario_path = Path(scenario_path)
        if scenario_path.exists():
            with open(scenario_path) as f:
                scenario = yaml.safe_load(f) or {}
            deep_merge(config_dict, scenario)

    if sweep_overrides is not None:
        deep_merge(config_dict, sweep_overrides)

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> CohortConfig:
    """Return a CohortConfig with all default values."""
    config = CohortConfig()
    validate_config(config)
    return config
