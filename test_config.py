from pathlib import Path

import pytest

from dostup.config import load_settings
from dostup.vpn.exceptions import ConfigurationError


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(str(tmp_path / "absent.conf"))

    assert settings.process_name == "mihomo"
    assert settings.control_script == Path.home() / "dostup" / "Dostup_VPN.command"
    assert settings.api_base_url == "http://127.0.0.1:9090"
    assert settings.poll_interval == 5.0
    assert settings.grace_period == 5.0
    assert settings.refresh_timeout == 15.0
    assert settings.healthcheck_timeout == 30.0
    assert settings.launch_strategy == "script"
    assert settings.readiness == "fixed"


def test_paths_follow_home(tmp_path):
    conf = tmp_path / "statusbar.conf"
    conf.write_text("[paths]\nhome = /opt/dostup\n\n[process]\nlaunch_strategy = Direct\nreadiness = poll\n")

    settings = load_settings(str(conf))

    assert settings.control_script == Path("/opt/dostup/Dostup_VPN.command")
    assert settings.core_binary == Path("/opt/dostup/mihomo")
    assert settings.terminal_script == Path("/opt/dostup/statusbar/run_command.command")
    assert settings.launch_strategy == "direct"
    assert settings.readiness == "poll"


def test_env_selects_config_file(tmp_path, monkeypatch):
    conf = tmp_path / "other.conf"
    conf.write_text("[ui]\nport = 9000\ntitle = VPN\n")
    monkeypatch.setenv("DOSTUP_STATUSBAR_CONFIG", str(conf))

    settings = load_settings()

    assert settings.port == 9000
    assert settings.title == "VPN"


@pytest.mark.parametrize("body", [
    "[process]\nlaunch_strategy = magic\n",
    "[process]\ngrace_period = soon\n",
    "[api]\nrefresh_timeout = 0\n",
    "[ui]\nport = eighty\n",
    "[ui]\nport = 0\n",
    "[ui]\nport = 70000\n",
    "no section header\n",
])
def test_invalid_values_raise(tmp_path, body):
    conf = tmp_path / "bad.conf"
    conf.write_text(body)

    with pytest.raises(ConfigurationError):
        load_settings(str(conf))
