"""Tests for the diagnostic report parser."""

from app.models import Anomaly, Confidence, DiagnosticReport, HealthStatus
from app.services.report_parser import (
    ParserState,
    ReportParser,
    confidence_of,
    health_status_of,
    parse_report,
    split_row,
)


MINIMAL_REPORT = """**Period:** 2024-02-23 to 2024-03-07
**Domain:** example.com

| Check | Status |
|---|---|
| GA4 Connection | ✅ Healthy |

| Date | Source | Metric | Drop % | Value | 7d Avg | Z-Score |
|---|---|---|---|---|---|---|
| 2024-03-01 | GSC | Clicks | -62% | 120 | 320 | -3.4 |

### 🔴 1. SERP layout change on top queries
"""


class TestSingleRowRoundTrip:
    """One of each section yields exactly one record of each type."""

    def test_one_of_each(self):
        report = parse_report(MINIMAL_REPORT)

        assert len(report.health_checks) == 1
        assert len(report.anomalies) == 1
        assert len(report.root_causes) == 1

        check = report.health_checks[0]
        assert check.name == "GA4 Connection"
        assert check.status == HealthStatus.HEALTHY

        assert report.anomalies[0] == Anomaly(
            date="2024-03-01",
            source="GSC",
            metric="Clicks",
            drop_percent="-62%",
            current_value=120,
            avg_7d=320,
            z_score=-3.4,
        )

        cause = report.root_causes[0]
        assert cause.title == "SERP layout change on top queries"
        assert cause.confidence == Confidence.HIGH

    def test_metadata(self):
        report = parse_report(MINIMAL_REPORT)
        assert report.period == "2024-02-23 to 2024-03-07"
        assert report.domain == "example.com"


class TestFullReport:

    def test_sections(self, sample_report):
        report = parse_report(sample_report)
        assert [hc.name for hc in report.health_checks] == [
            "GA4 Connection", "GSC Connection", "Ads Connection", "Crawl Errors",
        ]
        assert [a.metric for a in report.anomalies] == ["Clicks", "Sessions", "Impressions"]
        assert [rc.confidence for rc in report.root_causes] == [
            Confidence.HIGH, Confidence.MEDIUM, Confidence.LOW,
        ]

    def test_health_statuses(self, sample_report):
        statuses = {hc.name: hc.status for hc in parse_report(sample_report).health_checks}
        assert statuses["GA4 Connection"] == HealthStatus.HEALTHY
        assert statuses["GSC Connection"] == HealthStatus.WARNING
        assert statuses["Ads Connection"] == HealthStatus.ERROR
        assert statuses["Crawl Errors"] == HealthStatus.HEALTHY

    def test_total_drops_row_is_not_a_health_check(self, sample_report):
        report = parse_report(sample_report)
        assert report.total_drops_declared == 3
        assert all("Total Drops" not in hc.name for hc in report.health_checks)

    def test_total_drops_is_not_cross_checked(self):
        text = "Total Drops Detected: 7\n\n" + MINIMAL_REPORT
        report = parse_report(text)
        assert report.total_drops_declared == 7
        assert len(report.anomalies) == 1

    def test_result_is_immutable_report(self, sample_report):
        report = parse_report(sample_report)
        assert isinstance(report, DiagnosticReport)
        assert isinstance(report.anomalies, tuple)


class TestMalformedInput:
    """Parsing degrades instead of failing."""

    def test_short_drop_row_skipped_siblings_kept(self):
        text = (
            "| Date | Source | Metric | Drop % | Value | 7d Avg | Z-Score |\n"
            "|---|---|---|---|---|---|---|\n"
            "| 2024-03-01 | GSC | Clicks | -62% | 120 | 320 | -3.4 |\n"
            "| 2024-03-02 | GSC | Clicks | -40% |\n"
            "| 2024-03-03 | GA4 | Users | -20% | 80 | 100 | -2.2 |\n"
        )
        report = parse_report(text)
        assert [a.date for a in report.anomalies] == ["2024-03-01", "2024-03-03"]

    def test_missing_zscore_defaults_to_zero(self):
        text = (
            "| Date | Source | Metric | Drop % | Value | 7d Avg |\n"
            "| 2024-03-01 | GSC | Clicks | -62% | 120 | 320 |\n"
        )
        report = parse_report(text)
        assert len(report.anomalies) == 1
        assert report.anomalies[0].z_score == 0.0

    def test_bad_numbers_default_to_zero(self):
        text = (
            "| Date | Source | Metric | Drop % | Value | 7d Avg | Z-Score |\n"
            "| 2024-03-01 | GSC | Clicks | -62% | n/a | ? | high |\n"
        )
        drop = parse_report(text).anomalies[0]
        assert (drop.current_value, drop.avg_7d, drop.z_score) == (0, 0, 0.0)

    def test_numbers_use_leading_digits(self):
        text = (
            "| Date | Source | Metric | Drop % | Value | 7d Avg | Z-Score |\n"
            "| 2024-03-01 | GSC | Clicks | -62% | 120.7 | 1,320 | -3.4σ |\n"
        )
        drop = parse_report(text).anomalies[0]
        assert drop.current_value == 120
        assert drop.avg_7d == 1
        assert drop.z_score == -3.4

    def test_single_cell_health_row_skipped(self):
        text = "| Check | Status |\n| Lonely |\n| GA4 | Healthy |\n"
        report = parse_report(text)
        assert [hc.name for hc in report.health_checks] == ["GA4"]

    def test_table_ends_at_non_row_line(self):
        text = (
            "| Check | Status |\n"
            "| GA4 | Healthy |\n"
            "\n"
            "| Stray | Row |\n"
        )
        report = parse_report(text)
        assert [hc.name for hc in report.health_checks] == ["GA4"]

    def test_table_cut_short_at_end_of_input(self):
        text = "| Date | Source | Metric | Drop % | Value | 7d Avg | Z-Score |\n"
        assert parse_report(text).anomalies == ()

    def test_empty_and_none_input(self):
        assert parse_report("") == DiagnosticReport()
        assert parse_report(None) == DiagnosticReport()

    def test_missing_metadata_left_empty(self):
        report = parse_report("| Check | Status |\n| GA4 | Healthy |\n")
        assert report.period == ""
        assert report.domain == ""

    def test_heading_without_ordinal_ignored(self):
        report = parse_report("### 🔴 Unnumbered heading\n")
        assert report.root_causes == ()

    def test_drops_header_right_after_health_table(self):
        text = (
            "| Check | Status |\n"
            "| GA4 | Healthy |\n"
            "| Date | Source | Metric | Drop % | Value | 7d Avg | Z-Score |\n"
            "| 2024-03-01 | GSC | Clicks | -62% | 120 | 320 | -3.4 |\n"
        )
        report = parse_report(text)
        assert [hc.name for hc in report.health_checks] == ["GA4"]
        assert len(report.anomalies) == 1

    def test_windows_line_endings(self):
        report = parse_report(MINIMAL_REPORT.replace("\n", "\r\n"))
        assert len(report.anomalies) == 1
        assert report.domain == "example.com"


class TestConfidenceMarkers:

    def test_green_marker_defaults_to_medium(self):
        report = parse_report("### 🟢 4. Minor CTR noise\n")
        assert report.root_causes[0].confidence == Confidence.MEDIUM

    def test_priority_order_with_several_markers(self):
        assert confidence_of("### 🟡 1. Mixed 🔴") == Confidence.HIGH
        assert confidence_of("### 🟡 1. Mixed 🟠") == Confidence.MEDIUM

    def test_marker_must_follow_heading_prefix(self):
        assert parse_report("## 🔴 1. Not a level-3 heading\n").root_causes == ()


class TestHelpers:

    def test_split_row_drops_empty_cells(self):
        assert split_row("| a |  | b |") == ["a", "b"]

    def test_health_status_mapping(self):
        assert health_status_of("None") == HealthStatus.HEALTHY
        assert health_status_of("WARNING: stale") == HealthStatus.WARNING
        assert health_status_of("Disconnected") == HealthStatus.ERROR

    def test_parser_resets_between_reports(self, sample_report):
        parser = ReportParser()
        parser.parse(sample_report)
        report = parser.parse(MINIMAL_REPORT)
        assert len(report.anomalies) == 1
        assert parser.state == ParserState.SCANNING
