"""Results layer: event collection and KPI computation."""

from erflow.results.collector import ResultsCollector

__all__ = ["ResultsCollector"]
