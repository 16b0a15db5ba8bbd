"""PQ Reps -- guided practice script generation and compliance validation."""

__version__ = "0.1.0"
