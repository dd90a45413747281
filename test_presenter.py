import asyncio

from dostup.presenter import STATUS_RUNNING, STATUS_STOPPED, TOGGLE_START, TOGGLE_STOP, apply_status
from dostup.vpn.models import PresentationState
from dostup.vpn.poller import StatusPoller


class RecordingPresenter:
    def __init__(self):
        self.statuses = []
        self.menus = []

    def render_status(self, running):
        self.statuses.append(running)

    def render_menu(self, enabled):
        self.menus.append(enabled)


def test_running_state():
    presenter = RecordingPresenter()

    state = apply_status(PresentationState(), True, presenter=presenter)

    assert state.status_text == STATUS_RUNNING
    assert state.toggle_title == TOGGLE_STOP
    assert state.menu_enabled["check"] is True
    assert presenter.statuses == [True]
    assert presenter.menus[0]["healthcheck"] is True


def test_stopped_state_disables_core_actions():
    state = apply_status(PresentationState(), False)

    assert state.status_text == STATUS_STOPPED
    assert state.toggle_title == TOGGLE_START
    assert state.menu_enabled["check"] is False
    assert state.menu_enabled["update_providers"] is False
    assert state.menu_enabled["toggle"] is True
    assert state.menu_enabled["update_core"] is True


def test_busy_power_action_disables_power_items():
    state = apply_status(PresentationState(), True, busy={"power"})

    assert state.menu_enabled["toggle"] is False
    assert state.menu_enabled["restart"] is False
    assert state.menu_enabled["quit"] is False
    assert state.menu_enabled["healthcheck"] is True


def test_last_result_is_kept_until_replaced():
    state = apply_status(PresentationState(), True, last_result=False)
    apply_status(state, True)

    assert state.last_result is False

    apply_status(state, True, last_result=True)

    assert state.last_result is True


def test_poller_schedules_job_and_survives_failures():
    calls = []

    def job():
        calls.append(True)
        raise RuntimeError("pgrep vanished")

    async def scenario():
        poller = StatusPoller(job, interval=5.0)
        poller.start()
        assert len(poller.scheduler.jobs) == 1
        assert poller.scheduler.jobs[0].unit == "seconds"
        poller.scheduler.run_all()
        poller.scheduler.run_all()
        await poller.stop()
        return poller

    poller = asyncio.run(scenario())

    assert calls == [True, True]
    assert poller.scheduler.jobs == []
