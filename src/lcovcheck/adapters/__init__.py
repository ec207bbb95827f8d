"""Coverage report adapters."""

from lcovcheck.adapters.lcov import (
    DaLineCounts,
    HeaderLineCounts,
    ReadError,
    parse_coverage,
    parse_lcov_string,
)

__all__ = [
    "DaLineCounts",
    "HeaderLineCounts",
    "ReadError",
    "parse_coverage",
    "parse_lcov_string",
]
