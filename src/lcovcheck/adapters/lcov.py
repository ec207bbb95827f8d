"""LCOV tracefile parser.

Reads the ``.info`` text emitted by lcov, geninfo, gcovr ``--lcov``, c8, bun
and friends, and reduces it to a :class:`CoverageSummary`. Only the records
needed for line, function and branch totals are consumed; every other tag is
ignored so newer producers keep working.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from lcovcheck.models.coverage import CoverageSummary, FileCoverage, MetricRecord

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────

# LCOV record keys
_LCOV_SF = "SF"
_LCOV_DA = "DA"
_LCOV_LF = "LF"
_LCOV_LH = "LH"
_LCOV_FNF = "FNF"
_LCOV_FNH = "FNH"
_LCOV_BRF = "BRF"
_LCOV_BRH = "BRH"
_LCOV_END = "end_of_record"

_COUNTER_KEYS = frozenset({_LCOV_LF, _LCOV_LH, _LCOV_FNF, _LCOV_FNH, _LCOV_BRF, _LCOV_BRH})

# DA:<line>,<hits>[,<checksum>]
_DA_RE = re.compile(r"^(\d+),(\d+)(?:,.*)?$")
_COUNTER_RE = re.compile(r"^\d+$")

_READ_HINT = (
    "Make sure the test step runs with LCOV coverage output enabled "
    "(e.g. `bun test --coverage --coverage-reporter=lcov`) before this check."
)


class ReadError(Exception):
    """Raised when a coverage report cannot be read."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot read coverage report {self.path}: {reason}. {_READ_HINT}")


# ── Line-count sources ───────────────────────────────────────────


@dataclass(frozen=True)
class DaLineCounts:
    """Line counts derived from individual ``DA`` records."""

    entries: tuple[tuple[int, int], ...]

    @property
    def lines(self) -> MetricRecord:
        covered = sum(1 for _, hits in self.entries if hits > 0)
        return MetricRecord.from_counts(len(self.entries), covered)

    @property
    def uncovered_lines(self) -> tuple[int, ...]:
        return tuple(sorted({line for line, hits in self.entries if hits == 0}))


@dataclass(frozen=True)
class HeaderLineCounts:
    """Line counts taken from a section's ``LF``/``LH`` summary headers.

    Used only when the section carries no ``DA`` records, so the uncovered
    line numbers are unknown.
    """

    found: int
    hit: int

    @property
    def lines(self) -> MetricRecord:
        return MetricRecord.from_counts(self.found, self.hit)

    @property
    def uncovered_lines(self) -> tuple[int, ...]:
        return ()


LineCounts = DaLineCounts | HeaderLineCounts


# ── Parser state ─────────────────────────────────────────────────


@dataclass
class _LcovSection:
    path: str
    da: list[tuple[int, int]] = field(default_factory=list)
    counters: dict[str, int] = field(default_factory=dict)

    def merge(self, other: _LcovSection) -> None:
        self.da.extend(other.da)
        for key, value in other.counters.items():
            self.counters[key] = self.counters.get(key, 0) + value

    def line_counts(self) -> LineCounts:
        if self.da:
            return DaLineCounts(entries=tuple(self.da))
        return HeaderLineCounts(
            found=self.counters.get(_LCOV_LF, 0),
            hit=self.counters.get(_LCOV_LH, 0),
        )

    def to_file_coverage(self) -> FileCoverage:
        counts = self.line_counts()
        lines = counts.lines
        return FileCoverage(
            lines=lines,
            statements=lines,
            functions=MetricRecord.from_counts(
                self.counters.get(_LCOV_FNF, 0), self.counters.get(_LCOV_FNH, 0)
            ),
            branches=MetricRecord.from_counts(
                self.counters.get(_LCOV_BRF, 0), self.counters.get(_LCOV_BRH, 0)
            ),
            uncovered_lines=counts.uncovered_lines,
        )


def _close_section(sections: dict[str, _LcovSection], section: _LcovSection | None) -> None:
    if section is None:
        return
    existing = sections.get(section.path)
    if existing is None:
        sections[section.path] = section
    else:
        logger.debug("Merging repeated LCOV section for %s", section.path)
        existing.merge(section)


def _apply_record(section: _LcovSection, key: str, value: str) -> None:
    if key == _LCOV_DA:
        match = _DA_RE.match(value)
        if match is None:
            logger.debug("Skipping malformed DA record in %s: %r", section.path, value)
            return
        section.da.append((int(match.group(1)), int(match.group(2))))
        return
    if key in _COUNTER_KEYS:
        if not _COUNTER_RE.match(value):
            logger.debug("Skipping malformed %s record in %s: %r", key, section.path, value)
            return
        # Last value wins within a section; repeated sections are summed in merge().
        section.counters[key] = int(value)


# ── Public API ───────────────────────────────────────────────────


def parse_lcov_string(content: str) -> CoverageSummary:
    """Parse LCOV text into a :class:`CoverageSummary`.

    Never raises: blank input yields an all-zero summary and malformed records
    are skipped.
    """
    sections: dict[str, _LcovSection] = {}
    current: _LcovSection | None = None

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line == _LCOV_END:
            _close_section(sections, current)
            current = None
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        if key == _LCOV_SF:
            _close_section(sections, current)
            current = _LcovSection(path=value)
            continue
        if current is None:
            continue
        _apply_record(current, key, value.strip())

    _close_section(sections, current)

    files = {path: section.to_file_coverage() for path, section in sections.items()}
    logger.debug("Parsed LCOV data for %d file(s)", len(files))
    return CoverageSummary.from_files(files)


def parse_coverage(path: Path | str) -> CoverageSummary:
    """Read and parse the LCOV report at *path*.

    Raises:
        ReadError: If the file is missing, is not a regular file, cannot be
            read or is not UTF-8 text.
    """
    report_path = Path(path)
    logger.info("Reading LCOV report from %s", report_path)
    if not report_path.exists():
        raise ReadError(report_path, "file not found")
    if not report_path.is_file():
        raise ReadError(report_path, "not a regular file")
    try:
        content = report_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ReadError(report_path, f"not a UTF-8 text file ({exc.reason})") from exc
    except OSError as exc:
        raise ReadError(report_path, exc.strerror or str(exc)) from exc
    return parse_lcov_string(content)
