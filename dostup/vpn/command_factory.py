"""Factory for creating VPN-related commands."""

from pathlib import Path
from typing import List

from .commands import (
    Command,
    CONTROL_SCRIPT_ARGS,
    OPEN,
    OSASCRIPT,
    PGREP,
    SOCKETFILTERFW,
    applescript_quote,
    shell_quote,
)


class VPNCommandFactory:
    """Factory for creating VPN supervision commands."""

    @staticmethod
    def control_script(script_path: Path) -> Command:
        return Command.for_executable(str(script_path), valid_args=CONTROL_SCRIPT_ARGS)

    @staticmethod
    def start_vpn(script_path: Path) -> str:
        """Create detached control-script start command."""
        return VPNCommandFactory.control_script(script_path).with_arg("start").as_detached().build()

    @staticmethod
    def stop_vpn(script_path: Path) -> str:
        """Create control-script stop command."""
        return VPNCommandFactory.control_script(script_path).with_arg("stop").build()

    @staticmethod
    def restart_vpn(script_path: Path) -> str:
        """Create control-script restart command."""
        return VPNCommandFactory.control_script(script_path).with_arg("restart").build()

    @staticmethod
    def set_dns(script_path: Path) -> str:
        """Create control-script DNS setup command."""
        return VPNCommandFactory.control_script(script_path).with_arg("dns-set").build()

    @staticmethod
    def launch_core(binary_path: Path, config_dir: Path) -> str:
        """Create command that allows the core through the firewall and starts it detached."""
        allow = Command.for_executable(SOCKETFILTERFW).with_args("--add", str(binary_path)).build()
        unblock = Command.for_executable(SOCKETFILTERFW).with_args("--unblockapp", str(binary_path)).build()
        launch = (
            Command.for_executable(str(binary_path))
            .with_args("-d", str(config_dir))
            .as_detached()
            .build()
        )
        # Firewall failures must not prevent the launch
        return f"{allow} >/dev/null 2>&1; {unblock} >/dev/null 2>&1; {launch}"

    @staticmethod
    def find_process(name: str) -> List[str]:
        """Create exact-name process match command."""
        return Command.for_executable(PGREP).with_args("-x", name).build_argv()

    @staticmethod
    def elevate(shell_command: str) -> List[str]:
        """Create osascript command running shell_command with administrator privileges."""
        source = f"do shell script {applescript_quote(shell_command)} with administrator privileges"
        return Command.for_executable(OSASCRIPT).with_args("-e", source).build_argv()

    @staticmethod
    def notify(title: str, text: str) -> List[str]:
        """Create user notification command."""
        source = f"display notification {applescript_quote(text)} with title {applescript_quote(title)}"
        return Command.for_executable(OSASCRIPT).with_args("-e", source).build_argv()

    @staticmethod
    def terminal_script(script_path: Path, argument: str) -> str:
        """Content of the temporary .command file run in Terminal."""
        VPNCommandFactory.control_script(script_path).with_arg(argument)
        return f"#!/bin/bash\nbash {shell_quote(str(script_path))} {shell_quote(argument)}\n"

    @staticmethod
    def open_in_terminal(command_file: Path) -> List[str]:
        """Create command that opens a .command file in Terminal."""
        return Command.for_executable(OPEN).with_args("-a", "Terminal", str(command_file)).build_argv()
