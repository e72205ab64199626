"""Help Scout mailbox metrics."""

from helpscout_metrics.plugin import HelpScoutMetrics, plugin

__version__ = "0.1.0"

__all__ = ["HelpScoutMetrics", "plugin", "__version__"]
