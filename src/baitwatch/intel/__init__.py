# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Correlation layer -- IOC extraction, pattern detection, and campaign alerts."""
