# -*- coding: utf-8 -*-
"""
Hypothesis Konfiguration und gemeinsame Strategien für Property-Tests.

Profile per ``HYPOTHESIS_PROFILE`` wählbar (default, ci, debug, dev).
"""
from __future__ import annotations

import os

from hypothesis import HealthCheck, Verbosity, settings
from hypothesis import strategies as st

# ══════════════════════════════════════════════════════════════════════════════
# HYPOTHESIS PROFILE CONFIGURATION
# ══════════════════════════════════════════════════════════════════════════════

# Default Profile für normale Test-Runs
settings.register_profile(
    "default",
    max_examples=100,
    verbosity=Verbosity.normal,
    deadline=None,  # Keine Zeitbegrenzung (exhaustive Bereiche können langsam sein)
    suppress_health_check=[HealthCheck.too_slow],
)

# CI Profile mit mehr Examples
settings.register_profile(
    "ci",
    max_examples=500,
    verbosity=Verbosity.quiet,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)

# Debug Profile für Fehlersuche
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

# Dev Profile für schnelle Iteration
settings.register_profile(
    "dev",
    max_examples=25,
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


# ══════════════════════════════════════════════════════════════════════════════
# CUSTOM STRATEGIES FOR INDEX SPACES
# ══════════════════════════════════════════════════════════════════════════════


@st.composite
def index_spaces(
    draw: st.DrawFn,
    max_total: int = 100_000,
) -> int:
    """Strategy für Größen eines Index-Raums (inkl. leerer Raum)."""
    return draw(st.integers(min_value=0, max_value=max_total))


@st.composite
def worker_counts(draw: st.DrawFn, max_workers: int = 64) -> int:
    """Strategy für Worker-Anzahlen."""
    return draw(st.integers(min_value=1, max_value=max_workers))


@st.composite
def safe_indices(draw: st.DrawFn) -> tuple[int, int]:
    """(index, decimal_places) innerhalb des sicheren Bereichs ``[0, 10^9)`` mit <= 6 Stellen."""
    places = draw(st.integers(min_value=0, max_value=6))
    index = draw(st.integers(min_value=0, max_value=10**9 * 10**places - 2))
    return index, places
