"""Privileged command execution through the macOS authorization prompt."""

import re
from typing import Optional, Protocol

from .command_factory import VPNCommandFactory
from .exceptions import AuthorizationCancelled, AuthorizationFailed, VPNError
from .models import CommandOutcome
from .utils import run_command
from ..logging_utility import logger

USER_CANCELLED = -128

# osascript reports failures as "0:42: execution error: <message> (<number>)"
_ERROR_RE = re.compile(r"execution error:\s*(?P<message>.*?)\s*\((?P<code>-?\d+)\)\s*$", re.DOTALL)


class PrivilegeElevator(Protocol):
    def execute(self, shell_command: str) -> None:
        """Run shell_command with administrator rights.

        Raises AuthorizationCancelled or AuthorizationFailed.
        """
        ...


def parse_osascript_error(stderr: str) -> AuthorizationFailed:
    """Turn osascript stderr into an AuthorizationFailed carrying the OS code."""
    text = stderr.strip()
    match = _ERROR_RE.search(text)
    if match is None:
        return AuthorizationFailed(text or "Unknown error")
    return AuthorizationFailed(match.group("message"), int(match.group("code")))


class OsaScriptElevator:
    """Runs commands via `do shell script ... with administrator privileges`."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def execute(self, shell_command: str) -> None:
        try:
            returncode, _, stderr = run_command(
                VPNCommandFactory.elevate(shell_command),
                check=False,
                timeout=self.timeout,
            )
        except VPNError as e:
            raise AuthorizationFailed(str(e))
        if returncode == 0:
            return
        error = parse_osascript_error(stderr)
        if error.code == USER_CANCELLED:
            raise AuthorizationCancelled(error.message)
        raise error


class PrivilegedCommandRunner:
    """Maps elevator results onto CommandOutcome. Call from a worker thread."""

    def __init__(self, elevator: PrivilegeElevator):
        self.elevator = elevator

    def run(self, shell_command: str) -> CommandOutcome:
        logger.info(f"Running privileged command: {shell_command}")
        try:
            self.elevator.execute(shell_command)
        except AuthorizationCancelled:
            logger.info("Administrator authorization cancelled by user")
            return CommandOutcome.cancelled()
        except AuthorizationFailed as e:
            logger.error(f"Privileged command failed: {e.message}")
            return CommandOutcome.failed(e.message)
        return CommandOutcome.success()
