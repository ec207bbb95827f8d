"""Analyzers operating on parsed coverage summaries."""

from lcovcheck.analyzers.thresholds import evaluate_thresholds

__all__ = ["evaluate_thresholds"]
