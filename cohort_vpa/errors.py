"""Exception and warning classes for cohort reconstruction.

ConfigurationError is fatal and raised before any recurrence starts.
SolverExhaustion and DomainWarning are warnings: they are issued through
``warnings.warn`` and also recorded per class, so a run always completes
with a full (possibly flagged) table.
"""


class ConfigurationError(ValueError):
    """Inputs or parameters cannot describe a valid cohort reconstruction."""


class SolverExhaustion(UserWarning):
    """Fishing-mortality search hit its upper bound without reaching the target."""


class DomainWarning(UserWarning):
    """Computed values are outside the biologically meaningful range."""
