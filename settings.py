from __future__ import annotations
import os
from typing import List, Optional


APP_NAME = os.getenv("APP_NAME", "Swiss Ephemeris API")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ALLOW_ORIGINS: List[str] = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

# swetest
SWETEST_BIN = os.getenv("SWETEST_BIN", "swetest")
SE_EPHE_PATH = os.getenv("SE_EPHE_PATH") or "/app/vendor/swisseph"


def _optional_float(raw: Optional[str]) -> Optional[float]:
    if raw is None or not raw.strip():
        return None
    return float(raw)


SWETEST_TIMEOUT: Optional[float] = _optional_float(os.getenv("SWETEST_TIMEOUT"))
