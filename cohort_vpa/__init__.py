"""cohort_vpa: Cohort reconstruction for fish stock assessment.

Estimates, for one cohort observed over successive age or length classes,
survivors, fishing mortality, biomass and yield per class by working
backward from an assumed terminal fishing mortality:
  - Classical virtual population analysis (age data, exact catch equation)
  - Pope's cohort analysis (age data, closed-form approximation)
  - Jones' length-based cohort analysis (length data, von Bertalanffy growth)

Catch may be one cohort's vector or a class × period matrix; the cohort
is then read along the matrix diagonal.
"""

from cohort_vpa.analysis import run_cohort_analysis, run_from_config  # noqa: F401
from cohort_vpa.config import CohortConfig, default_config, load_config  # noqa: F401
from cohort_vpa.errors import (  # noqa: F401
    ConfigurationError,
    DomainWarning,
    SolverExhaustion,
)
from cohort_vpa.output import CohortResult  # noqa: F401
from cohort_vpa.types import COHORT_DTYPE, ClassFlag  # noqa: F401

__version__ = "0.1.0"
