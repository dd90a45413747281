"""VPN process supervision."""

import asyncio
import os
import signal
from typing import Callable, Optional, Set

from .command_factory import VPNCommandFactory
from .commands import CommandError
from .elevation import OsaScriptElevator, PrivilegeElevator, PrivilegedCommandRunner
from .exceptions import TransportFailure
from .launch import (
    ControlScriptLaunch,
    DirectBinaryLaunch,
    FixedDelayReadiness,
    LaunchStrategy,
    PollingReadiness,
    ReadinessCheck,
)
from .models import (
    CommandOutcome,
    HealthReport,
    PresentationState,
    Provider,
    ProviderKind,
    ProxyHealthRecord,
    VPNState,
)
from .probe import ProcessProbe
from .provider_api import ProviderAPIClient
from .terminal import TerminalLauncher
from ..config import Settings
from ..logging_utility import logger
from ..presenter import NotificationSink, OsaScriptNotifier, StatusPresenter, apply_status

POWER = "power"

STOPPED_TEXT = "Dostup VPN stopped"
STARTED_TEXT = "Dostup VPN started"
START_FAILED_TEXT = "Failed to start VPN"
RESTARTED_TEXT = "Dostup VPN restarted"
DNS_SET_TEXT = "DNS settings applied"
PROVIDERS_UPDATED_TEXT = "Providers updated"
PROVIDERS_FAILED_TEXT = "Provider update failed"
HEALTHCHECK_UNAVAILABLE_TEXT = "Health check failed: control plane unavailable"
NO_PROVIDERS_TEXT = "No proxy providers"


def _terminate_process() -> None:
    os.kill(os.getpid(), signal.SIGTERM)


class VPNSupervisor:
    """
    Drives the core through privileged commands and the control-plane API.

    Coroutines run on the event loop that owns the presentation state.
    Blocking work goes through asyncio.to_thread; the state is only touched
    after an await returns to the loop.
    """

    def __init__(self,
                 process_name: str,
                 control_script,
                 probe: ProcessProbe,
                 runner: PrivilegedCommandRunner,
                 api: ProviderAPIClient,
                 launch: LaunchStrategy,
                 readiness: ReadinessCheck,
                 terminal: TerminalLauncher,
                 notifier: NotificationSink,
                 title: str = "Dostup VPN",
                 presenter: Optional[StatusPresenter] = None,
                 terminate: Callable[[], None] = _terminate_process):
        self.process_name = process_name
        self.control_script = control_script
        self.probe = probe
        self.runner = runner
        self.api = api
        self.launch = launch
        self.readiness = readiness
        self.terminal = terminal
        self.notifier = notifier
        self.title = title
        self.presenter = presenter
        self.terminate = terminate
        self.state = PresentationState()
        self._busy: Set[str] = set()

    @classmethod
    def from_settings(cls, settings: Settings,
                      elevator: Optional[PrivilegeElevator] = None,
                      notifier: Optional[NotificationSink] = None,
                      presenter: Optional[StatusPresenter] = None) -> "VPNSupervisor":
        if settings.launch_strategy == "direct":
            launch = DirectBinaryLaunch(settings.core_binary, settings.core_config_dir)
        else:
            launch = ControlScriptLaunch(settings.control_script)
        if settings.readiness == "poll":
            readiness = PollingReadiness(settings.grace_period)
        else:
            readiness = FixedDelayReadiness(settings.grace_period)
        api = ProviderAPIClient(
            settings.api_base_url,
            list_timeout=settings.list_timeout,
            refresh_timeout=settings.refresh_timeout,
            healthcheck_timeout=settings.healthcheck_timeout,
            detail_timeout=settings.detail_timeout,
        )
        return cls(
            process_name=settings.process_name,
            control_script=settings.control_script,
            probe=ProcessProbe(),
            runner=PrivilegedCommandRunner(elevator or OsaScriptElevator()),
            api=api,
            launch=launch,
            readiness=readiness,
            terminal=TerminalLauncher(settings.control_script, settings.terminal_script),
            notifier=notifier or OsaScriptNotifier(),
            title=settings.title,
            presenter=presenter,
        )

    # Status

    def _is_running(self) -> bool:
        return self.probe.is_running(self.process_name)

    def current_status(self, last_result: Optional[bool] = None) -> VPNState:
        """Probe the process table and reconcile the presentation state."""
        running = self._is_running()
        apply_status(self.state, running, last_result, self._busy, self.presenter)
        return VPNState.from_running(running)

    def is_busy(self, action: str) -> bool:
        return action in self._busy

    def _acquire(self, action: str) -> bool:
        if action in self._busy:
            logger.warning(f"Ignoring '{action}': already in progress")
            return False
        self._busy.add(action)
        apply_status(self.state, self.state.running, None, self._busy, self.presenter)
        return True

    def _release(self, action: str) -> None:
        self._busy.discard(action)

    def _notify(self, text: str) -> None:
        self.notifier.notify(self.title, text)

    def _report(self, outcome: CommandOutcome, success_text: str) -> Optional[bool]:
        """Notify about a privileged command outcome; cancellation stays silent."""
        if outcome.is_cancelled:
            return None
        if outcome.is_success:
            self._notify(success_text)
            return True
        self._notify(f"Error: {outcome.message}")
        return False

    async def _run_privileged(self, shell_command: str) -> CommandOutcome:
        return await asyncio.to_thread(self.runner.run, shell_command)

    # Power actions

    async def toggle(self) -> Optional[VPNState]:
        """Stop the core if it runs, start it otherwise.

        Returns the refreshed state, or None if a power action was in flight.
        """
        if not self._acquire(POWER):
            return None
        try:
            running = await asyncio.to_thread(self._is_running)
            if running:
                logger.info("Stopping VPN")
                outcome = await self._run_privileged(VPNCommandFactory.stop_vpn(self.control_script))
                result = self._report(outcome, STOPPED_TEXT)
            else:
                result = await self._start()
        finally:
            self._release(POWER)
        return self.current_status(result)

    async def _start(self) -> Optional[bool]:
        logger.info("Starting VPN")
        outcome = await self._run_privileged(self.launch.start_command())
        if not outcome.is_success:
            return self._report(outcome, STARTED_TEXT)

        # The start command is detached, so its success says nothing about the core
        started = await asyncio.to_thread(self.readiness.wait, self._is_running)
        if started:
            logger.info("VPN started")
            self._notify(STARTED_TEXT)
            return True
        logger.error(f"{self.process_name} is not running after start request")
        self._notify(START_FAILED_TEXT)
        return False

    async def _script_action(self, shell_command: str, success_text: str) -> Optional[VPNState]:
        if not self._acquire(POWER):
            return None
        try:
            outcome = await self._run_privileged(shell_command)
            result = self._report(outcome, success_text)
        finally:
            self._release(POWER)
        return self.current_status(result)

    async def restart(self) -> Optional[VPNState]:
        logger.info("Restarting VPN")
        return await self._script_action(VPNCommandFactory.restart_vpn(self.control_script), RESTARTED_TEXT)

    async def set_dns(self) -> Optional[VPNState]:
        logger.info("Applying DNS settings")
        return await self._script_action(VPNCommandFactory.set_dns(self.control_script), DNS_SET_TEXT)

    async def exit_app(self) -> bool:
        """
        Stop the core if needed and terminate the application.

        Returns:
            bool: True if termination was requested
        """
        if not self._acquire(POWER):
            return False
        outcome = None
        try:
            if await asyncio.to_thread(self._is_running):
                logger.info("Stopping VPN before exit")
                outcome = await self._run_privileged(VPNCommandFactory.stop_vpn(self.control_script))
        finally:
            self._release(POWER)

        if outcome is not None:
            if outcome.is_cancelled:
                logger.info("Exit cancelled, VPN left running")
                self.current_status()
                return False
            self._report(outcome, STOPPED_TEXT)
        logger.info("Terminating status bar application")
        self.terminate()
        return True

    # Provider actions

    async def update_providers(self) -> Optional[bool]:
        """
        Refresh every proxy and rule provider one at a time.

        Returns:
            bool: True if every listing and refresh succeeded, None if an
            update was already in flight
        """
        if not self._acquire("update_providers"):
            return None
        try:
            ok = True
            for kind in (ProviderKind.PROXY, ProviderKind.RULE):
                names, listed = await asyncio.to_thread(self.api.list_providers, kind)
                ok = ok and listed
                for provider in [Provider(name, kind) for name in names]:
                    logger.info(f"Refreshing {provider.kind.value} provider {provider.name}")
                    refreshed = await asyncio.to_thread(self.api.refresh_provider, provider.kind, provider.name)
                    ok = ok and refreshed
        finally:
            self._release("update_providers")

        self._notify(PROVIDERS_UPDATED_TEXT if ok else PROVIDERS_FAILED_TEXT)
        self.current_status(ok)
        return ok

    async def healthcheck(self) -> Optional[HealthReport]:
        """
        Run a health check on every proxy provider and notify a summary.

        Returns:
            HealthReport, or None if a health check was already in flight
        """
        if not self._acquire("healthcheck"):
            return None
        try:
            names, listed = await asyncio.to_thread(self.api.list_providers, ProviderKind.PROXY)
            report = HealthReport(listing_failed=not listed)
            for name in names:
                trigger_failed = False
                try:
                    await asyncio.to_thread(self.api.run_healthcheck, name)
                except TransportFailure as e:
                    logger.warning(f"Health check trigger for {name} failed: {e}")
                    trigger_failed = True
                try:
                    histories = await asyncio.to_thread(self.api.get_provider_detail, name)
                    record = ProxyHealthRecord.from_histories(name, histories)
                except TransportFailure as e:
                    logger.error(f"Could not read health of {name}: {e}")
                    record = ProxyHealthRecord.failed(name)
                record.trigger_failed = trigger_failed
                report.records.append(record)
        finally:
            self._release("healthcheck")

        if report.listing_failed:
            self._notify(HEALTHCHECK_UNAVAILABLE_TEXT)
        elif not report.records:
            self._notify(NO_PROVIDERS_TEXT)
        else:
            self._notify(report.summary())
        if report.has_errors:
            logger.warning(f"Health check finished with errors:\n{report.summary()}")
        self.current_status(not report.has_errors)
        return report

    # Interactive control script commands

    def _open_in_terminal(self, argument: str) -> bool:
        try:
            self.terminal.launch(argument)
        except (CommandError, OSError) as e:
            logger.error(f"Could not open '{argument}' in Terminal: {e}")
            self._notify(f"Error: {e}")
            return False
        return True

    def check_access(self) -> bool:
        return self._open_in_terminal("check")

    def update_core(self) -> bool:
        return self._open_in_terminal("update-core")

    def update_config(self) -> bool:
        return self._open_in_terminal("update-config")
