"""cohort_vpa visualization library.

Modules:
  - style: Dark theme colours and helpers
  - cohort: Cohort reconstruction bar + mortality chart
"""

from cohort_vpa.viz.style import (  # noqa: F401
    COMPONENT_COLORS,
    DARK_BG,
    DARK_PANEL,
    GRID_COLOR,
    MORTALITY_COLOR,
    TEXT_COLOR,
    apply_dark_theme,
    dark_figure,
    save_figure,
)

from cohort_vpa.viz.cohort import (  # noqa: F401
    plot_cohort_analysis,
)
