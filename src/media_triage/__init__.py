"""Interactive triage of downloaded media folders into a curated library."""

__version__ = "0.1.0"
