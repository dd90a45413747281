"""Interactive control-script commands opened in Terminal."""

import os
import subprocess
from pathlib import Path

from .command_factory import VPNCommandFactory
from ..logging_utility import logger


class TerminalLauncher:
    """
    Runs the control script in a Terminal window without waiting for it.

    A temporary .command file is opened with `open -a Terminal`, which needs
    no Automation permission.
    """

    def __init__(self, script_path: Path, command_file: Path):
        self.script_path = script_path
        self.command_file = command_file

    def launch(self, argument: str) -> None:
        """
        Open the control script with argument in Terminal.

        Args:
            argument: Control script argument, e.g. 'check'

        Raises:
            ValidationError: argument is not a control script command
            OSError: the command file could not be written or opened
        """
        content = VPNCommandFactory.terminal_script(self.script_path, argument)
        self.command_file.parent.mkdir(parents=True, exist_ok=True)
        self.command_file.write_text(content, encoding="utf-8")
        os.chmod(self.command_file, 0o755)

        logger.info(f"Opening '{argument}' in Terminal")
        subprocess.Popen(
            VPNCommandFactory.open_in_terminal(self.command_file),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            close_fds=True,
        )
