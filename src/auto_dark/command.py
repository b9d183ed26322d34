"""Bounded external command execution for detectors."""

from __future__ import annotations

import subprocess

from .errors import DetectionError

DEFAULT_TIMEOUT = 3.0


def run_command(args: list[str], timeout: float = DEFAULT_TIMEOUT) -> str:
    """
    Run a command and return its stdout.

    Raises:
        DetectionError: if the command is missing, times out, exits non-zero
            or prints output that is not valid text.
    """
    program = args[0]
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise DetectionError(f"{program} timed out after {timeout:g}s") from None
    except FileNotFoundError:
        raise DetectionError(f"{program} not found") from None
    except UnicodeDecodeError as e:
        raise DetectionError(f"{program} printed undecodable output: {e}") from e
    except OSError as e:
        raise DetectionError(f"{program} failed to run: {e}") from e

    if result.returncode != 0:
        raise DetectionError(f"{program} returned {result.returncode}: {result.stderr.strip()}")
    return result.stdout
