"""
Diagnostic Report Parser

Turns the markdown-like text produced by the upstream analysis job into a
typed DiagnosticReport. The parser is a single-pass state machine over a
lazy line sequence:

  SCANNING ──"| Check | Status |"──────────▶ IN_HEALTH_TABLE
  SCANNING ──"| Date | Source | Metric |"──▶ IN_DROPS_TABLE
  IN_*_TABLE ──non "|" line──▶ SCANNING

Metadata lines, the "Total Drops Detected" summary and confidence-marked
headings are recognised on every line regardless of state.

Parsing never raises. Malformed rows are skipped, unparseable numbers become
zero and missing metadata stays empty, so a partially broken report still
renders its healthy sections.
"""

import enum
import io
import logging
import re
from typing import Iterable, Iterator, List, Optional

from ..models import (
    Anomaly,
    Confidence,
    DiagnosticReport,
    HealthCheck,
    HealthStatus,
    RootCause,
)
from ..utils import parse_leading_float, parse_leading_int

logger = logging.getLogger("seo_pulse.parser")


# ─── Input markers ──────────────────────────────────────────────────

PERIOD_PREFIX = "**Period:**"
DOMAIN_PREFIX = "**Domain:**"
HEALTH_TABLE_HEADER = "| Check | Status |"
DROPS_TABLE_HEADER = "| Date | Source | Metric |"
TOTAL_DROPS_PHRASE = "Total Drops Detected"
TOTAL_DROPS_ROW = "Total Drops"
HEALTH_HEADER_CELL = "Check"
DROPS_HEADER_CELL = "Date"
ROW_PREFIX = "|"
SEPARATOR_MARK = "---"

MARKER_HIGH = "\U0001F534"    # red circle
MARKER_MEDIUM = "\U0001F7E0"  # orange circle
MARKER_LOW = "\U0001F7E1"     # yellow circle
MARKER_OTHER = "\U0001F7E2"   # green circle
CONFIDENCE_MARKERS = (MARKER_LOW, MARKER_MEDIUM, MARKER_HIGH, MARKER_OTHER)

# Checked in this order; a heading carrying several markers takes the first hit.
CONFIDENCE_PRIORITY = (
    (MARKER_HIGH, Confidence.HIGH),
    (MARKER_MEDIUM, Confidence.MEDIUM),
    (MARKER_LOW, Confidence.LOW),
)
DEFAULT_CONFIDENCE = Confidence.MEDIUM

_HEADING_PREFIXES = tuple(f"### {m}" for m in CONFIDENCE_MARKERS)
_HEADING_TITLE = re.compile(
    r"###\s*(?:%s)\s*\d+\.\s*(.+)" % "|".join(CONFIDENCE_MARKERS)
)
_FIRST_INT = re.compile(r"(\d+)")

HEALTHY_MARKERS = ("✅", "healthy", "none")   # check mark
WARNING_MARKERS = ("⚠", "warning")           # warning sign

MIN_HEALTH_CELLS = 2
MIN_DROP_CELLS = 6


class ParserState(str, enum.Enum):
    SCANNING = "scanning"
    IN_HEALTH_TABLE = "in_health_table"
    IN_DROPS_TABLE = "in_drops_table"


# ─── Line helpers ───────────────────────────────────────────────────

def iter_lines(raw_text: str) -> Iterator[str]:
    """Yield stripped lines lazily; rows are newline-delimited."""
    for line in io.StringIO(raw_text, newline="\n"):
        yield line.strip()


def split_row(line: str) -> List[str]:
    """Split a table row into its non-empty, stripped cells."""
    return [cell.strip() for cell in line.split(ROW_PREFIX) if cell.strip()]


def is_table_row(line: str) -> bool:
    return line.startswith(ROW_PREFIX)


def health_status_of(status_text: str) -> HealthStatus:
    lowered = status_text.lower()
    if any(marker in lowered for marker in HEALTHY_MARKERS):
        return HealthStatus.HEALTHY
    if any(marker in lowered for marker in WARNING_MARKERS):
        return HealthStatus.WARNING
    return HealthStatus.ERROR


def confidence_of(heading: str) -> Confidence:
    for marker, confidence in CONFIDENCE_PRIORITY:
        if marker in heading:
            return confidence
    return DEFAULT_CONFIDENCE


# ─── Parser ─────────────────────────────────────────────────────────

class ReportParser:
    """
    Stateful line-by-line parser; use ``parse_report`` for the common case.

    Each call to ``parse`` resets all accumulated state, so one instance may be
    reused for several reports sequentially.
    """

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self.state = ParserState.SCANNING
        self.health_checks: List[HealthCheck] = []
        self.anomalies: List[Anomaly] = []
        self.root_causes: List[RootCause] = []
        self.period = ""
        self.domain = ""
        self.total_drops_declared = 0
        self.skipped_rows = 0

    def parse(self, raw_text: Optional[str]) -> DiagnosticReport:
        """Parse raw report text into a DiagnosticReport. Never raises."""
        self._reset()
        if not isinstance(raw_text, str):
            raw_text = ""

        self.feed(iter_lines(raw_text))

        report = DiagnosticReport(
            health_checks=tuple(self.health_checks),
            anomalies=tuple(self.anomalies),
            root_causes=tuple(self.root_causes),
            period=self.period,
            domain=self.domain,
            total_drops_declared=self.total_drops_declared,
        )
        logger.info(
            "Parsed report: %d health checks, %d drops, %d root causes (%d rows skipped)",
            len(report.health_checks),
            len(report.anomalies),
            len(report.root_causes),
            self.skipped_rows,
        )
        return report

    def feed(self, lines: Iterable[str]) -> None:
        for line in lines:
            self._step(line)

    def _step(self, line: str) -> None:
        self._scan_metadata(line)

        # A header always opens its table, even directly after another table.
        if HEALTH_TABLE_HEADER in line:
            self.state = ParserState.IN_HEALTH_TABLE
            return
        if DROPS_TABLE_HEADER in line:
            self.state = ParserState.IN_DROPS_TABLE
            return

        if self.state is ParserState.SCANNING:
            return
        if not is_table_row(line):
            self.state = ParserState.SCANNING
        elif self.state is ParserState.IN_HEALTH_TABLE:
            self._health_row(line)
        else:
            self._drop_row(line)

    def _scan_metadata(self, line: str) -> None:
        if line.startswith(PERIOD_PREFIX):
            self.period = line[len(PERIOD_PREFIX):].strip()
        if line.startswith(DOMAIN_PREFIX):
            self.domain = line[len(DOMAIN_PREFIX):].strip()
        if TOTAL_DROPS_PHRASE in line:
            match = _FIRST_INT.search(line)
            if match:
                self.total_drops_declared = int(match.group(1))
        if line.startswith(_HEADING_PREFIXES):
            self._root_cause(line)

    def _health_row(self, line: str) -> None:
        if SEPARATOR_MARK in line:
            return
        cells = split_row(line)
        if len(cells) < MIN_HEALTH_CELLS:
            self._skip(line)
            return
        if cells[0] == HEALTH_HEADER_CELL:
            return
        name, status_text = cells[0], cells[1]
        if TOTAL_DROPS_ROW in name:
            return
        self.health_checks.append(HealthCheck(name=name, status=health_status_of(status_text)))

    def _drop_row(self, line: str) -> None:
        if SEPARATOR_MARK in line:
            return
        cells = split_row(line)
        if len(cells) < MIN_DROP_CELLS:
            self._skip(line)
            return
        if cells[0] == DROPS_HEADER_CELL:
            return
        self.anomalies.append(Anomaly(
            date=cells[0],
            source=cells[1],
            metric=cells[2],
            drop_percent=cells[3],
            current_value=parse_leading_int(cells[4]),
            avg_7d=parse_leading_int(cells[5]),
            z_score=parse_leading_float(cells[6]) if len(cells) > 6 else 0.0,
        ))

    def _root_cause(self, line: str) -> None:
        match = _HEADING_TITLE.match(line)
        if not match:
            logger.debug("Heading without ordinal title ignored: %r", line)
            return
        self.root_causes.append(RootCause(
            title=match.group(1).strip(),
            confidence=confidence_of(line),
        ))

    def _skip(self, line: str) -> None:
        self.skipped_rows += 1
        logger.debug("Skipping malformed %s row: %r", self.state.value, line)


def parse_report(raw_text: Optional[str]) -> DiagnosticReport:
    """Parse raw report text into a DiagnosticReport."""
    return ReportParser().parse(raw_text)
