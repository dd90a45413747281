import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, HTTPException
from fastapi.templating import Jinja2Templates
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from typing import Dict, Optional

from .config import load_settings
from .logging_utility import logger
from .vpn.poller import StatusPoller
from .vpn.supervisor import POWER, VPNSupervisor

BASE_DIR = Path(__file__).resolve().parent.parent

settings = load_settings()
supervisor = VPNSupervisor.from_settings(settings)
poller = StatusPoller(supervisor.current_status, settings.poll_interval)
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

# Keeps references so running actions are not garbage collected
_tasks = set()


@asynccontextmanager
async def lifespan(app: FastAPI):
    supervisor.current_status()
    poller.start()
    yield
    await poller.stop()


app = FastAPI(title="Dostup VPN", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")


class StatusResponse(BaseModel):
    running: bool
    status_text: str
    toggle_title: str
    menu_enabled: Dict[str, bool]
    last_result: Optional[bool] = None


def _spawn(coro) -> None:
    task = asyncio.get_running_loop().create_task(coro)
    _tasks.add(task)
    task.add_done_callback(_finished)


def _finished(task: asyncio.Task) -> None:
    _tasks.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Action {task.get_coro().__qualname__} failed: {error!r}")


def _accept(action: str, busy_key: str, coro_factory) -> dict:
    if supervisor.is_busy(busy_key):
        raise HTTPException(status_code=409, detail=f"{action} already in progress")
    logger.info(f"Action requested: {action}")
    _spawn(coro_factory())
    return {"status": "accepted", "action": action}


@app.get("/")
async def home(request: Request):
    """Status panel"""
    return templates.TemplateResponse(request, "index.html", {
        "state": supervisor.state,
        "title": settings.title,
    })


@app.get("/status", response_model=StatusResponse)
async def status():
    state = supervisor.state
    return StatusResponse(
        running=state.running,
        status_text=state.status_text,
        toggle_title=state.toggle_title,
        menu_enabled=state.menu_enabled,
        last_result=state.last_result,
    )


@app.post("/toggle", status_code=202)
async def toggle():
    """Start or stop the VPN"""
    return _accept("toggle", POWER, supervisor.toggle)


@app.post("/restart", status_code=202)
async def restart():
    return _accept("restart", POWER, supervisor.restart)


@app.post("/dns_set", status_code=202)
async def dns_set():
    return _accept("dns_set", POWER, supervisor.set_dns)


@app.post("/update_providers", status_code=202)
async def update_providers():
    """Refresh all proxy and rule providers"""
    return _accept("update_providers", "update_providers", supervisor.update_providers)


@app.post("/healthcheck", status_code=202)
async def healthcheck():
    """Health check all proxy providers"""
    return _accept("healthcheck", "healthcheck", supervisor.healthcheck)


@app.post("/quit", status_code=202)
async def quit_app():
    return _accept("quit", POWER, supervisor.exit_app)


@app.post("/check", status_code=202)
async def check_access():
    if not supervisor.state.running:
        raise HTTPException(status_code=409, detail="VPN is not running")
    if not await asyncio.to_thread(supervisor.check_access):
        raise HTTPException(status_code=500, detail="Failed to open Terminal")
    return {"status": "accepted", "action": "check"}


@app.post("/update_core", status_code=202)
async def update_core():
    if not await asyncio.to_thread(supervisor.update_core):
        raise HTTPException(status_code=500, detail="Failed to open Terminal")
    return {"status": "accepted", "action": "update_core"}


@app.post("/update_config", status_code=202)
async def update_config():
    if not await asyncio.to_thread(supervisor.update_config):
        raise HTTPException(status_code=500, detail="Failed to open Terminal")
    return {"status": "accepted", "action": "update_config"}
