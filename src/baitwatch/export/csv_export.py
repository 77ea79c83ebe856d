# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""CSV export of stored threat indicators."""

from __future__ import annotations

import csv
import io

from baitwatch.models.indicator import ThreatIndicator

CSV_COLUMNS = [
    "type",
    "value",
    "confidence",
    "severity",
    "times_seen",
    "first_seen",
    "last_seen",
]


def indicators_to_csv(indicators: list[ThreatIndicator]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for ind in indicators:
        writer.writerow(
            [
                str(ind.indicator_type),
                ind.indicator_value,
                f"{ind.confidence_score:.4f}",
                str(ind.severity),
                ind.times_seen,
                ind.first_seen_at.isoformat(),
                ind.last_seen_at.isoformat(),
            ]
        )
    return buf.getvalue()
