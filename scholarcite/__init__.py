"""ScholarCite: citation extraction, selective rendering and review."""

__version__ = "0.1.0"
