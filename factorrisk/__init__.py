"""Factor risk decomposition reports.

Keep this module light: importing ``factorrisk`` should not pull in matplotlib.
Import submodules explicitly, e.g. ``from factorrisk.report import rep_risk``.
"""

__version__ = "0.1.0"

__all__ = ["models", "risk", "report", "cli"]
