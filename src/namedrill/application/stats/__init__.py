# Application Stats Package
from .metrics_calculator import DeckSummary, MetricsCalculator, SessionSummary

__all__ = ["MetricsCalculator", "DeckSummary", "SessionSummary"]
