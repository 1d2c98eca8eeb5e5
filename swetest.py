"""
Runs the Swiss Ephemeris ``swetest`` program.

The chart code depends on the ``CalculatorInvoker`` protocol rather than on
a subprocess, so tests can feed it canned output.
"""

import logging
import os
import subprocess
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

import settings
from exceptions import ExternalCalculatorError

logger = logging.getLogger(__name__)

# 0-9 = Sun..Pluto, t = true Node, A = mean Apogee (Lilith), D = Chiron,
# F = Ceres, G = Pallas, H = Juno, I = Vesta
FULL_BODY_SET = '0123456789tADFGHI'
SUN_ONLY = '0'
PLACIDUS = 'P'

OUTPUT_FLAGS = ('-fPZ', '-g,', '-head')


class CalculatorInvoker(Protocol):
    def invoke(self, args: Sequence[str]) -> str:
        """Run the calculator with ``args`` and return its standard output."""
        ...


class SwetestRunner:
    """CalculatorInvoker backed by the swetest executable."""

    def __init__(self,
                 binary: Optional[str] = None,
                 ephemeris_path: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.binary = binary or settings.SWETEST_BIN
        self.ephemeris_path = ephemeris_path or settings.SE_EPHE_PATH
        self.timeout = timeout if timeout is not None else settings.SWETEST_TIMEOUT

    def invoke(self, args: Sequence[str]) -> str:
        cmd = [self.binary, *args]
        env = {**os.environ, 'SE_EPHE_PATH': self.ephemeris_path}
        logger.debug("Running %s", " ".join(cmd))

        try:
            result = subprocess.run(
                cmd, env=env, capture_output=True, text=True, timeout=self.timeout
            )
        except FileNotFoundError as e:
            raise ExternalCalculatorError(f"swetest not found: {self.binary}", reason=str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalCalculatorError(
                f"swetest timed out after {self.timeout}s", reason=str(e)
            ) from e
        except OSError as e:
            raise ExternalCalculatorError(f"Failed to execute swetest: {e}", reason=str(e)) from e

        if result.returncode != 0:
            reason = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
            logger.warning("swetest exited with %s: %s", result.returncode, reason)
            raise ExternalCalculatorError(
                f"swetest exited with code {result.returncode}", reason=reason
            )
        return result.stdout


def format_swiss_date(dt: datetime) -> str:
    """DD.MM.YYYY from the UTC fields of ``dt``."""
    return f"{dt.day:02d}.{dt.month:02d}.{dt.year}"


def format_swiss_time(dt: datetime) -> str:
    """HH:MM:SS from the UTC fields of ``dt``."""
    return f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"


def _moment_args(dt: datetime) -> List[str]:
    return [f"-b{format_swiss_date(dt)}", f"-ut{format_swiss_time(dt)}"]


def body_args(dt: datetime, bodies: str = FULL_BODY_SET) -> List[str]:
    return [*_moment_args(dt), f"-p{bodies}", *OUTPUT_FLAGS]


def house_args(dt: datetime, latitude: float, longitude: float, system: str = PLACIDUS) -> List[str]:
    return [*_moment_args(dt), f"-house{longitude},{latitude},{system}", *OUTPUT_FLAGS]
