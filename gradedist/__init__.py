"""Grade distribution exporter: dashboard crosstab exports -> per-course grade tables."""

__version__ = "0.1.0"
