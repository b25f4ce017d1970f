"""
Anomaly identity keys.

An anomaly is identified by ``(date, source, metric)``; two drops sharing all
three are the same anomaly for action tracking. Positional references are
never used, so re-parsing or re-ordering a report keeps in-flight runs attached.
"""

import re
from typing import Any, Mapping

_WHITESPACE = re.compile(r"\s+")


def identity_of(anomaly: Any) -> str:
    """Return the identity key, e.g. ``"2024-03-01_gsc_clicks"``.

    Accepts an Anomaly (or anything with ``date``/``source``/``metric``
    attributes) or a mapping with those keys.
    """
    if isinstance(anomaly, Mapping):
        parts = (anomaly.get("date", ""), anomaly.get("source", ""), anomaly.get("metric", ""))
    else:
        parts = (anomaly.date, anomaly.source, anomaly.metric)
    key = "_".join(str(p) for p in parts)
    return _WHITESPACE.sub("_", key).lower()
