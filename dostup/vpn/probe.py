"""Process table queries."""

from .command_factory import VPNCommandFactory
from .exceptions import ProcessQueryFailure, VPNError
from .utils import run_command
from ..logging_utility import logger


class ProcessProbe:
    """Answers whether a process with an exact name is running."""

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout

    def query(self, process_name: str) -> int:
        """Return the exit status of pgrep for process_name."""
        try:
            returncode, _, _ = run_command(
                VPNCommandFactory.find_process(process_name),
                check=False,
                timeout=self.timeout,
            )
        except VPNError as e:
            raise ProcessQueryFailure(str(e))
        return returncode

    def is_running(self, process_name: str) -> bool:
        try:
            return self.query(process_name) == 0
        except ProcessQueryFailure as e:
            # No evidence means not running
            logger.warning(f"Process query for {process_name} failed: {e}")
            return False
