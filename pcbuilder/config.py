"""Environment-driven defaults for the PC Builder engine.

Every value can be overridden per call; these are only the fallbacks used
when a caller does not say otherwise.
"""

from __future__ import annotations

import os

# ──────────────────────────────────────────────
# Search limits
# ──────────────────────────────────────────────

DEFAULT_MAX_CANDIDATES = int(os.getenv("PCBUILDER_MAX_CANDIDATES", "5000"))
DEFAULT_SEARCH_TIME_LIMIT = float(os.getenv("PCBUILDER_SEARCH_TIME_LIMIT", "10"))  # seconds
DEFAULT_MAX_IMPROVEMENT_ROUNDS = int(os.getenv("PCBUILDER_MAX_IMPROVEMENT_ROUNDS", "25"))
DEFAULT_MAX_PAIR_EVALUATIONS = int(os.getenv("PCBUILDER_MAX_PAIR_EVALUATIONS", "20000"))

# ──────────────────────────────────────────────
# Compatibility policy
# ──────────────────────────────────────────────

# Headroom for motherboard, drives and fans on top of CPU + GPU draw
DEFAULT_POWER_OVERHEAD_W = float(os.getenv("PCBUILDER_POWER_OVERHEAD_W", "100"))
DEFAULT_PSU_SAFETY_MULTIPLIER = float(os.getenv("PCBUILDER_PSU_SAFETY_MULTIPLIER", "1.0"))
DEFAULT_PCIE_POLICY = os.getenv("PCBUILDER_PCIE_POLICY", "no_greater_than")

# ──────────────────────────────────────────────
# Ranking
# ──────────────────────────────────────────────

DEFAULT_TOLERANCE = float(os.getenv("PCBUILDER_TOLERANCE", "100000"))
DEFAULT_TOLERANCE_FRACTION = float(os.getenv("PCBUILDER_TOLERANCE_FRACTION", "0.1"))
DEFAULT_TOP_WITHIN = int(os.getenv("PCBUILDER_TOP_WITHIN", "5"))
DEFAULT_TOP_NEAR = int(os.getenv("PCBUILDER_TOP_NEAR", "3"))

ENGINE_VERSION = "0.1.0"
