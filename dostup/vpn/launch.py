"""Start strategies and start readiness checks."""

import time
from pathlib import Path
from typing import Callable, Protocol

from .command_factory import VPNCommandFactory
from .utils import wait_for


class LaunchStrategy(Protocol):
    def start_command(self) -> str:
        """Shell command that starts the core without waiting for it."""
        ...


class ControlScriptLaunch:
    """Starts the core through the control script."""

    def __init__(self, script_path: Path):
        self.script_path = script_path

    def start_command(self) -> str:
        return VPNCommandFactory.start_vpn(self.script_path)


class DirectBinaryLaunch:
    """Starts the core binary directly after allowing it through the firewall."""

    def __init__(self, binary_path: Path, config_dir: Path):
        self.binary_path = binary_path
        self.config_dir = config_dir

    def start_command(self) -> str:
        return VPNCommandFactory.launch_core(self.binary_path, self.config_dir)


class ReadinessCheck(Protocol):
    def wait(self, is_running: Callable[[], bool]) -> bool:
        """Block until the core is considered up; return the final probe."""
        ...


class FixedDelayReadiness:
    """Sleeps a fixed grace period, then probes once.

    The core sends no readiness signal, so the grace period is a heuristic.
    """

    def __init__(self, grace_period: float = 5.0, sleep: Callable[[float], None] = time.sleep):
        self.grace_period = grace_period
        self.sleep = sleep

    def wait(self, is_running: Callable[[], bool]) -> bool:
        self.sleep(self.grace_period)
        return is_running()


class PollingReadiness:
    """Probes with exponential backoff within the same grace budget."""

    def __init__(self, grace_period: float = 5.0, initial_delay: float = 0.5,
                 sleep: Callable[[float], None] = time.sleep):
        self.grace_period = grace_period
        self.initial_delay = initial_delay
        self.sleep = sleep

    def wait(self, is_running: Callable[[], bool]) -> bool:
        return wait_for(is_running, self.grace_period, self.initial_delay, self.sleep)
