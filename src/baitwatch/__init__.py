# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""baitwatch - Phishing threat intelligence and campaign detection engine."""

__version__ = "0.2.0"
