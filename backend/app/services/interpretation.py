"""
Anomaly Interpretation Rules

Deterministic, rule-table driven explanations and suggested next actions for
a detected drop. Rules are checked top to bottom and the first match wins;
add a category by inserting a rule, never by reordering existing ones.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..models import Anomaly


@dataclass(frozen=True)
class Interpretation:
    text: str


@dataclass(frozen=True)
class SuggestedActions:
    primary: str
    secondary: Tuple[str, ...]


@dataclass(frozen=True)
class InterpretationRule:
    category: str
    keywords: Tuple[str, ...]
    text: str
    # Extra condition on the absolute drop percentage; None matches any value
    magnitude: Optional[Callable[[float], bool]] = None

    def matches(self, metric: str, drop_magnitude: float) -> bool:
        if self.keywords and not any(k in metric for k in self.keywords):
            return False
        return self.magnitude is None or self.magnitude(drop_magnitude)


@dataclass(frozen=True)
class ActionRule:
    category: str
    keywords: Tuple[str, ...]
    primary: str
    secondary: Tuple[str, ...]

    def matches(self, metric: str) -> bool:
        return not self.keywords or any(k in metric for k in self.keywords)


SHARP_DROP_PERCENT = 50.0

_CLICK = ("click",)
_TRAFFIC = ("session", "user")
_IMPRESSION = ("impression",)


# ─── Interpretation table ────────────────────────────────────────────

INTERPRETATION_RULES: List[InterpretationRule] = [
    InterpretationRule(
        category="click_sharp",
        keywords=_CLICK,
        magnitude=lambda pct: pct > SHARP_DROP_PERCENT,
        text=(
            "Search clicks dropped sharply while impressions may have remained stable, "
            "suggesting a ranking or CTR issue rather than a demand drop. This often "
            "happens after SERP layout changes or title/meta mismatches."
        ),
    ),
    InterpretationRule(
        category="click_moderate",
        keywords=_CLICK,
        magnitude=lambda pct: pct <= SHARP_DROP_PERCENT,
        text=(
            "Moderate decline in search clicks. This could indicate seasonal fluctuations, "
            "algorithm updates, or competitor activity. Review your top performing pages "
            "for any changes."
        ),
    ),
    InterpretationRule(
        category="traffic",
        keywords=_TRAFFIC,
        text=(
            "Traffic decline detected. Check for technical issues like slow page load, "
            "broken tracking, or crawl errors. Also verify no significant content was "
            "removed or modified."
        ),
    ),
    InterpretationRule(
        category="impression",
        keywords=_IMPRESSION,
        text=(
            "Visibility in search results has decreased. This may indicate indexing issues, "
            "ranking drops, or reduced search demand for your target keywords."
        ),
    ),
    InterpretationRule(
        category="generic",
        keywords=(),
        text=(
            "Anomaly detected in this metric. Review recent changes to your site, check "
            "Google Search Console for any notifications, and compare with industry trends."
        ),
    ),
]


# ─── Suggested-action table ──────────────────────────────────────────

ACTION_RULES: List[ActionRule] = [
    ActionRule(
        category="click",
        keywords=_CLICK,
        primary="Review recent ranking changes for top 5 affected queries",
        secondary=(
            "Check title/meta changes in the last 7 days",
            "Verify no indexing or crawl errors for ranking pages",
        ),
    ),
    ActionRule(
        category="traffic",
        keywords=_TRAFFIC,
        primary="Check GA4 realtime to verify tracking is working",
        secondary=(
            "Review page speed metrics for any degradation",
            "Check for any 4xx/5xx errors on key landing pages",
        ),
    ),
    ActionRule(
        category="impression",
        keywords=_IMPRESSION,
        primary="Review Search Console for manual actions or penalties",
        secondary=(
            "Check URL Inspection for indexing issues",
            "Analyze keyword rankings for your target terms",
        ),
    ),
    ActionRule(
        category="generic",
        keywords=(),
        primary="Investigate the root cause of this anomaly",
        secondary=(
            "Check for any recent site changes",
            "Compare with industry trends and seasonality",
        ),
    ),
]


def match_interpretation_rule(anomaly: Anomaly) -> InterpretationRule:
    metric = anomaly.metric.lower()
    magnitude = anomaly.drop_magnitude
    for rule in INTERPRETATION_RULES:
        if rule.matches(metric, magnitude):
            return rule
    return INTERPRETATION_RULES[-1]


def match_action_rule(anomaly: Anomaly) -> ActionRule:
    metric = anomaly.metric.lower()
    for rule in ACTION_RULES:
        if rule.matches(metric):
            return rule
    return ACTION_RULES[-1]


def interpret(anomaly: Anomaly) -> Interpretation:
    """Natural-language reading of a drop, keyed on metric and drop size."""
    return Interpretation(text=match_interpretation_rule(anomaly).text)


def suggest_actions(anomaly: Anomaly) -> SuggestedActions:
    """Primary action plus secondary checks for a drop's metric category."""
    rule = match_action_rule(anomaly)
    return SuggestedActions(primary=rule.primary, secondary=rule.secondary)
