"""Presentation state and the collaborators that display it."""

import subprocess
from typing import Dict, Iterable, Optional, Protocol

from .logging_utility import logger
from .vpn.command_factory import VPNCommandFactory
from .vpn.models import PresentationState

STATUS_RUNNING = "● VPN running"
STATUS_STOPPED = "○ VPN stopped"
TOGGLE_STOP = "Stop VPN"
TOGGLE_START = "Start VPN"

MENU_ITEMS = (
    "toggle",
    "restart",
    "check",
    "update_providers",
    "healthcheck",
    "update_core",
    "update_config",
    "dns_set",
    "quit",
)

# Items that talk to the running core
NEEDS_RUNNING = {"check", "update_providers", "healthcheck"}

# Menu items mapped to the action whose busy flag disables them
ITEM_ACTIONS = {
    "toggle": "power",
    "restart": "power",
    "dns_set": "power",
    "quit": "power",
    "update_providers": "update_providers",
    "healthcheck": "healthcheck",
}


class StatusPresenter(Protocol):
    def render_status(self, running: bool) -> None:
        ...

    def render_menu(self, enabled: Dict[str, bool]) -> None:
        ...


class NotificationSink(Protocol):
    def notify(self, title: str, text: str) -> None:
        ...


class OsaScriptNotifier:
    """Delivers macOS user notifications through osascript."""

    def notify(self, title: str, text: str) -> None:
        logger.info(f"Notification: {title}: {text}")
        try:
            subprocess.Popen(
                VPNCommandFactory.notify(title, text),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning(f"Could not deliver notification: {e}")


def apply_status(state: PresentationState, running: bool,
                 last_result: Optional[bool] = None,
                 busy: Iterable[str] = (),
                 presenter: Optional[StatusPresenter] = None) -> PresentationState:
    """
    Reconcile the presentation state with a fresh probe result.

    Must only be called from the event loop.

    Args:
        state: State to update in place
        running: Latest probe result
        last_result: Aggregate result of the last finished action, if any
        busy: Actions currently in flight
        presenter: Optional presenter to push the new state to

    Returns:
        The updated state
    """
    busy = set(busy)
    state.running = running
    state.status_text = STATUS_RUNNING if running else STATUS_STOPPED
    state.toggle_title = TOGGLE_STOP if running else TOGGLE_START
    if last_result is not None:
        state.last_result = last_result

    enabled = {}
    for item in MENU_ITEMS:
        allowed = running or item not in NEEDS_RUNNING
        if ITEM_ACTIONS.get(item) in busy:
            allowed = False
        enabled[item] = allowed
    state.menu_enabled = enabled

    if presenter is not None:
        presenter.render_status(running)
        presenter.render_menu(dict(enabled))
    return state
