import os
import tempfile
from pathlib import Path
from types import SimpleNamespace

import pytest

# Keep test logs out of the user's home
os.environ.setdefault("DOSTUP_STATUSBAR_LOG_DIR", tempfile.mkdtemp(prefix="dostup-logs-"))
os.environ.setdefault("DOSTUP_STATUSBAR_CONFIG", os.path.join(tempfile.gettempdir(), "dostup-missing.conf"))

from dostup.vpn.elevation import PrivilegedCommandRunner  # noqa: E402
from dostup.vpn.exceptions import TransportFailure  # noqa: E402
from dostup.vpn.launch import ControlScriptLaunch, FixedDelayReadiness  # noqa: E402
from dostup.vpn.supervisor import VPNSupervisor  # noqa: E402
from dostup.vpn.terminal import TerminalLauncher  # noqa: E402

CONTROL_SCRIPT = Path("/Users/tester/dostup/Dostup_VPN.command")


class FakeProbe:
    """Returns queued states in order, then repeats the last one."""

    def __init__(self, states):
        self.states = list(states)
        self.calls = 0

    def is_running(self, name):
        self.calls += 1
        if len(self.states) > 1:
            return self.states.pop(0)
        return self.states[0]


class FakeElevator:
    def __init__(self, error=None):
        self.error = error
        self.commands = []

    def execute(self, shell_command):
        self.commands.append(shell_command)
        if self.error is not None:
            raise self.error


class FakeAPI:
    def __init__(self, providers=None, refresh=None, details=None, healthcheck_errors=()):
        # kind value -> list of names, or None for a failed listing
        self.providers = providers or {"proxies": [], "rules": []}
        self.refresh = refresh or {}
        self.details = details or {}
        self.healthcheck_errors = set(healthcheck_errors)
        self.calls = []

    def list_providers(self, kind):
        self.calls.append(("list", kind.value))
        names = self.providers.get(kind.value)
        if names is None:
            return [], False
        return list(names), True

    def refresh_provider(self, kind, name):
        self.calls.append(("refresh", kind.value, name))
        return self.refresh.get((kind.value, name), True)

    def run_healthcheck(self, name):
        self.calls.append(("healthcheck", name))
        if name in self.healthcheck_errors:
            raise TransportFailure(f"healthcheck {name} timed out")

    def get_provider_detail(self, name):
        self.calls.append(("detail", name))
        detail = self.details.get(name)
        if isinstance(detail, Exception):
            raise detail
        return detail or []


class RecordingNotifier:
    def __init__(self):
        self.messages = []

    def notify(self, title, text):
        self.messages.append((title, text))

    @property
    def texts(self):
        return [text for _, text in self.messages]


@pytest.fixture
def make_supervisor(tmp_path):
    def factory(probe_states=(False,), elevator_error=None, api=None, readiness=None):
        sleeps = []
        probe = FakeProbe(probe_states)
        elevator = FakeElevator(elevator_error)
        notifier = RecordingNotifier()
        terminated = []
        supervisor = VPNSupervisor(
            process_name="mihomo",
            control_script=CONTROL_SCRIPT,
            probe=probe,
            runner=PrivilegedCommandRunner(elevator),
            api=api or FakeAPI(),
            launch=ControlScriptLaunch(CONTROL_SCRIPT),
            readiness=readiness or FixedDelayReadiness(5.0, sleep=sleeps.append),
            terminal=TerminalLauncher(CONTROL_SCRIPT, tmp_path / "run_command.command"),
            notifier=notifier,
            terminate=lambda: terminated.append(True),
        )
        return SimpleNamespace(
            supervisor=supervisor,
            probe=probe,
            elevator=elevator,
            notifier=notifier,
            sleeps=sleeps,
            terminated=terminated,
        )
    return factory
