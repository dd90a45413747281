"""Command templates and builders for VPN supervision."""

from typing import List, Optional, Tuple
from dataclasses import dataclass


class CommandError(Exception):
    """Base exception for command-related errors."""
    pass


class ValidationError(CommandError):
    """Raised when command validation fails."""
    pass


def shell_quote(value: str) -> str:
    """Wrap value in single quotes, escaping embedded quotes as '\\''."""
    return "'" + value.replace("'", "'\\''") + "'"


def applescript_quote(value: str) -> str:
    """Render value as an AppleScript string literal."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


DETACHED_SUFFIX = "</dev/null >/dev/null 2>&1 &"


@dataclass
class Command:
    """Shell command builder with validation."""
    base_cmd: List[str]
    detached: bool = False
    _valid_args: Optional[Tuple[str, ...]] = None

    def _validate_arg(self, arg: str) -> None:
        """Validate positional argument if validation rules exist."""
        if self._valid_args is not None and arg not in self._valid_args:
            raise ValidationError(
                f"Invalid argument '{arg}' for command {self.base_cmd[0]}. "
                f"Valid arguments are: {', '.join(self._valid_args)}"
            )

    def _validate_executable(self) -> None:
        """Validate that base command exists."""
        if not self.base_cmd or not self.base_cmd[0]:
            raise ValidationError("Command cannot be empty")

    @classmethod
    def for_executable(cls, path: str, valid_args: Optional[Tuple[str, ...]] = None) -> 'Command':
        """Create command for an executable path with optional validation rules."""
        command = cls([path], False, valid_args)
        command._validate_executable()
        return command

    def with_arg(self, arg: str) -> 'Command':
        """Add single argument."""
        self._validate_arg(arg)
        return Command(self.base_cmd + [arg], self.detached, self._valid_args)

    def with_args(self, *args: str) -> 'Command':
        """Add multiple arguments."""
        for arg in args:
            self._validate_arg(arg)
        return Command(self.base_cmd + list(args), self.detached, self._valid_args)

    def as_detached(self) -> 'Command':
        """Mark command to run in the background with no attached stdio."""
        return Command(self.base_cmd, True, self._valid_args)

    def build(self) -> str:
        """Get final shell command string."""
        self._validate_executable()
        cmd = " ".join(shell_quote(part) for part in self.base_cmd)
        if self.detached:
            cmd = f"{cmd} {DETACHED_SUFFIX}"
        return cmd

    def build_argv(self) -> List[str]:
        """Get final command as an argument list for subprocess."""
        self._validate_executable()
        return list(self.base_cmd)


CONTROL_SCRIPT_ARGS = (
    "start",
    "stop",
    "restart",
    "check",
    "update-core",
    "update-config",
    "dns-set",
)

PGREP = "/usr/bin/pgrep"
OSASCRIPT = "/usr/bin/osascript"
OPEN = "/usr/bin/open"
SOCKETFILTERFW = "/usr/libexec/ApplicationFirewall/socketfilterfw"
