"""Address intelligence: wallet profiling, scoring and cohort analysis."""

__version__ = "0.1.0"
