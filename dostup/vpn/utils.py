"""Utility functions for VPN supervision."""

import subprocess
from typing import Callable, Optional, Tuple
import time

from .exceptions import VPNError
from ..logging_utility import logger


def run_command(cmd: list[str], check: bool = True, timeout: Optional[float] = None) -> Tuple[int, str, str]:
    """
    Run command and return its exit status and output.

    Args:
        cmd: Command as list of strings
        check: Whether to raise exception on error
        timeout: Seconds to wait before giving up

    Returns:
        Tuple of (returncode, stdout, stderr)
    """
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=check, timeout=timeout)
        return result.returncode, result.stdout, result.stderr
    except subprocess.CalledProcessError as e:
        raise VPNError(f"Command failed: {' '.join(cmd)}\n{e.stderr}")
    except subprocess.TimeoutExpired:
        raise VPNError(f"Command timed out after {timeout}s: {cmd[0]}")
    except OSError as e:
        raise VPNError(f"Command could not be started: {cmd[0]}: {e}")


def wait_for(condition: Callable[[], bool], budget: float, initial_delay: float = 0.5,
             sleep: Callable[[float], None] = time.sleep) -> bool:
    """
    Poll condition with exponential backoff until it holds or the budget is spent.

    Args:
        condition: Callable returning True when ready
        budget: Total seconds to spend sleeping
        initial_delay: First sleep interval, doubled after each attempt
        sleep: Sleep function

    Returns:
        bool: True if condition became true
    """
    waited = 0.0
    delay = initial_delay
    attempt = 0
    while waited < budget:
        step = min(delay, budget - waited)
        sleep(step)
        waited += step
        attempt += 1
        if condition():
            logger.info(f"Condition met after {waited:.1f}s ({attempt} attempts)")
            return True
        delay *= 2
    return False
