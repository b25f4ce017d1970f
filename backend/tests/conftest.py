"""Shared test fixtures for the diagnostics backend tests."""

import json

import httpx
import pytest

from app.models import Anomaly


SAMPLE_REPORT = """# Traffic & Spend Diagnostic Report

**Period:** 2024-02-23 to 2024-03-07
**Domain:** example.com

## Health Check

| Check | Status |
|-------|--------|
| GA4 Connection | ✅ Healthy |
| GSC Connection | ⚠️ Warning: partial data |
| Ads Connection | ❌ Error |
| Crawl Errors | None detected |
| Total Drops Detected | 3 |

## Detected Drops

| Date | Source | Metric | Drop % | Value | 7d Avg | Z-Score |
|------|--------|--------|--------|-------|--------|---------|
| 2024-03-01 | GSC | Clicks | -62% | 120 | 320 | -3.4 |
| 2024-03-02 | GA4 | Sessions | -28% | 900 | 1250 | -2.1 |
| 2024-03-03 | GSC | Impressions | -15% | 5400 | 6350 | -1.2 |

## Root Cause Analysis

### 🔴 1. SERP layout change on top queries
- **Confidence:** high

### 🟠 2. Title tag rewrite on /pricing
- **Confidence:** medium

### 🟡 3. Seasonal demand dip
- **Confidence:** low
"""


@pytest.fixture
def sample_report():
    """Well-formed raw report with three of every section."""
    return SAMPLE_REPORT


@pytest.fixture
def click_drop():
    """The worked example drop: a severe, sharp click decline."""
    return Anomaly(
        date="2024-03-01",
        source="GSC",
        metric="Clicks",
        drop_percent="-62%",
        current_value=120,
        avg_7d=320,
        z_score=-3.4,
    )


@pytest.fixture
def session_drop():
    return Anomaly(
        date="2024-03-02",
        source="GA4",
        metric="Sessions",
        drop_percent="-28%",
        current_value=900,
        avg_7d=1250,
        z_score=-2.1,
    )


def action_reply(request: httpx.Request) -> httpx.Response:
    """Fake upstream action endpoint: echoes the drop back in the summary."""
    body = json.loads(request.content)
    drop = body["drop"]
    return httpx.Response(200, json={
        "success": True,
        "runId": f"run-{drop['metric'].lower()}",
        "status": "done",
        "output": {
            "findings": [{"type": "page_meta", "data": [], "summary": f"checked {drop['metric']}"}],
            "changes": [],
            "nextSteps": ["Re-check rankings in 7 days"],
            "summary": f"{drop['source']} {drop['metric']} reviewed",
        },
    })


@pytest.fixture(name="action_reply")
def action_reply_fixture():
    """Handler for ``httpx.MockTransport`` faking a successful action run."""
    return action_reply
