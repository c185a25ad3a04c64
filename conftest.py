"""Global pytest configuration."""

import os

# Instant simulated analysis for tests before any imports
os.environ.setdefault("ANALYSIS_MIN_DELAY_MS", "0")
os.environ.setdefault("ANALYSIS_MAX_DELAY_MS", "0")
