"""
Tests for the command-line interface
"""
import io
import os
import signal
import threading

import pytest
from rich.console import Console
from typer.testing import CliRunner

import port_keeper.lib.cmd.keep as keep
from port_keeper.cli import app
from port_keeper.lib.keeper import KeeperState
from port_keeper.lib.ports.manager import ReservationManager
from port_keeper.lib.ports.base import EventType, ReservationEvent
from port_keeper.lib.utils import is_port_in_use

from conftest import wait_until

runner = CliRunner()

@pytest.fixture
def config_file(tmp_path, free_port):
    """Config file reserving a single free port"""
    path = tmp_path / "config.yaml"
    path.write_text(f'ports: "{free_port}"\n')
    return path

@pytest.fixture
def stop_when_bound(monkeypatch):
    """Replace the signal wait with one that returns once ports are held"""
    seen = {}

    def fake_wait(keeper, shutdown):
        wait_until(lambda: keeper.state is KeeperState.RUNNING)
        seen["bound"] = keeper.bound_ports
        seen["pending"] = keeper.pending_ports

    monkeypatch.setattr(keep, "_wait_for_shutdown", fake_wait)
    return seen

def test_help_lists_commands():
    """Test all commands are registered"""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("run", "resolve", "init"):
        assert command in result.output

def test_resolve_ports_option():
    """Test dry-run resolution from the command line"""
    result = runner.invoke(app, ["resolve", "--ports", "5000-5002,5010", "--exclude", "5001"])
    assert result.exit_code == 0
    assert "3 ports would be reserved" in result.output
    assert "5000, 5002, 5010" in result.output

def test_resolve_config_file(config_file, free_port):
    """Test resolution from a config file"""
    result = runner.invoke(app, ["resolve", "--config", str(config_file)])
    assert result.exit_code == 0
    assert str(free_port) in result.output

def test_resolve_check(busy_port, free_port):
    """Test availability is shown per port"""
    port, _ = busy_port
    result = runner.invoke(app, ["resolve", "--ports", f"{free_port},{port}", "--check"])
    assert result.exit_code == 0
    assert f"{free_port} available" in result.output
    assert f"{port} in use" in result.output

def test_resolve_everything_excluded():
    """Test a specification that leaves nothing"""
    result = runner.invoke(app, ["resolve", "--ports", "5000", "--exclude", "5000"])
    assert result.exit_code == 0
    assert "No ports left" in result.output

def test_resolve_invalid_specification():
    """Test malformed specifications exit with an error"""
    result = runner.invoke(app, ["resolve", "--ports", "abc"])
    assert result.exit_code == 1
    assert "Invalid port specification" in result.output

def test_resolve_missing_config(tmp_path):
    """Test a missing config file exits with an error"""
    result = runner.invoke(app, ["resolve", "--config", str(tmp_path / "missing.yaml")])
    assert result.exit_code == 1
    assert "Configuration error" in result.output

def test_run_holds_and_releases(config_file, free_port, stop_when_bound):
    """Test run prints bound and released ports"""
    result = runner.invoke(app, ["run", "--config", str(config_file)])

    assert result.exit_code == 0
    assert stop_when_bound["bound"] == [free_port]
    assert f"+ {free_port}" in result.output
    assert f"- {free_port}" in result.output
    assert not is_port_in_use(free_port)

def test_run_reports_busy_port(busy_port, free_port, stop_when_bound):
    """Test busy ports are reported once and kept pending"""
    port, _ = busy_port
    result = runner.invoke(app, ["run", "--ports", f"{free_port},{port}", "--interval", "0.1"])

    assert result.exit_code == 0
    assert stop_when_bound["pending"] == [port]
    assert f"E {port} : " in result.output
    assert result.output.count(f"E {port}") == 1

def test_run_missing_config(tmp_path, stop_when_bound):
    """Test a configuration failure binds nothing"""
    result = runner.invoke(app, ["run", "--config", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Configuration error" in result.output
    assert stop_when_bound == {}
    assert "+ " not in result.output

def test_run_invalid_specification(stop_when_bound):
    """Test a malformed specification binds nothing"""
    result = runner.invoke(app, ["run", "--ports", "10-"])

    assert result.exit_code == 1
    assert "Invalid port specification" in result.output
    assert stop_when_bound == {}

def test_run_everything_excluded(stop_when_bound):
    """Test run exits when no port is left"""
    result = runner.invoke(app, ["run", "--ports", "5000", "--exclude", "5000"])
    assert result.exit_code == 0
    assert "No ports left" in result.output
    assert stop_when_bound == {}

def test_run_keeper_failure(monkeypatch, free_port):
    """Test run exits with an error when the keeper loop dies"""
    def broken_retry(self):
        raise RuntimeError("retry pass exploded")

    monkeypatch.setattr(keep, "SHUTDOWN_POLL", 0.05)
    monkeypatch.setattr(ReservationManager, "retry_pending", broken_retry)
    result = runner.invoke(app, ["run", "--ports", str(free_port), "--interval", "0.1"])

    assert result.exit_code == 1
    assert "Port keeper stopped unexpectedly: retry pass exploded" in result.output
    assert f"+ {free_port}" in result.output
    assert f"- {free_port}" in result.output
    assert not is_port_in_use(free_port)

def test_init(tmp_path):
    """Test interactive initialization"""
    path = tmp_path / "config.yaml"
    result = runner.invoke(app, ["init", "--config", str(path)], input="5000-5010\n5005\n")

    assert result.exit_code == 0
    assert "Configuration initialized" in result.output
    assert "10 ports will be reserved" in result.output
    assert path.exists()

def test_console_listener():
    """Test events are rendered as +, - and E lines on the right stream"""
    out, err = io.StringIO(), io.StringIO()
    listener = keep.ConsoleListener(out=Console(file=out), err=Console(file=err))

    listener.notify(ReservationEvent(EventType.BOUND, 5000))
    listener.notify(ReservationEvent(EventType.UNBOUND, 5000))
    listener.notify(ReservationEvent(EventType.BIND_FAILED, 5001, "Address [already] in use"))

    assert out.getvalue().splitlines() == ["+ 5000", "- 5000"]
    assert err.getvalue().splitlines() == ["E 5001 : Address [already] in use"]

@pytest.mark.skipif(os.name == "nt", reason="SIGTERM terminates the process on Windows")
def test_signal_handlers_set_shutdown_event():
    """Test SIGTERM requests shutdown instead of killing the process"""
    shutdown = threading.Event()
    previous = keep._install_signal_handlers(shutdown)
    try:
        os.kill(os.getpid(), signal.SIGTERM)
        assert wait_until(shutdown.is_set)
    finally:
        keep._restore_signal_handlers(previous)

    assert signal.getsignal(signal.SIGTERM) == previous[signal.SIGTERM]
