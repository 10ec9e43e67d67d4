"""DocPilot: route code changes to the documentation they affect."""

__version__ = "0.1.0"
