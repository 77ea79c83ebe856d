# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""STIX 2.1 and CSV export of stored threat indicators."""

from baitwatch.export.csv_export import CSV_COLUMNS, indicators_to_csv
from baitwatch.export.stix import (
    baitwatch_identity,
    build_stix_bundle,
    build_stix_pattern,
    indicator_to_stix,
)

__all__ = [
    "CSV_COLUMNS",
    "baitwatch_identity",
    "build_stix_bundle",
    "build_stix_pattern",
    "indicator_to_stix",
    "indicators_to_csv",
]
