"""Tests for the beacon CLI."""
from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml

from beacon.cli import main
from beacon.errors import PingError, TransportError
from beacon.registry import CallResult


REQUIRED = [
    "--app-name", "orders",
    "--jmx-host", "orders.internal",
    "--registry-url", "http://registry:8181",
    "--authorization", "Basic abc",
    "--callback-host", "orders.internal",
]


class TestShowConfig:
    def test_prints_resolved_yaml(self, capsys) -> None:
        main(["show-config", *REQUIRED, "--retry-interval", "3"])
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["app_name"] == "orders"
        assert data["retry_interval"] == 3.0
        assert data["authorization"] == "********"

    def test_config_file_with_override(self, tmp_path: Path, capsys) -> None:
        path = tmp_path / "beacon.yaml"
        path.write_text(yaml.dump({
            "app_name": "orders",
            "jmx_host": "orders.internal",
            "registry_url": "http://registry:8181",
            "authorization": "Basic abc",
            "callback_host": "orders.internal",
        }))
        main(["show-config", "--config", str(path), "--app-name", "payments"])
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["app_name"] == "payments"

    def test_missing_config_exits(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["show-config", "--app-name", "orders"])
        assert exc.value.code == 1
        assert "missing required configuration" in capsys.readouterr().err


class TestPing:
    def test_reachable(self, capsys) -> None:
        with patch("beacon.cli.RegistryClient") as client_cls:
            client_cls.return_value.ping.return_value = CallResult.success({"status": "UP"})
            main(["ping", *REQUIRED])
        client_cls.assert_called_once_with("http://registry:8181", "Basic abc", timeout=10.0)
        assert "is reachable" in capsys.readouterr().out

    def test_unreachable(self, capsys) -> None:
        with patch("beacon.cli.RegistryClient") as client_cls:
            client_cls.return_value.ping.return_value = CallResult.failure(
                PingError(TransportError("refused"))
            )
            with pytest.raises(SystemExit) as exc:
                main(["ping", *REQUIRED])
        assert exc.value.code == 1
        assert "unreachable" in capsys.readouterr().err


class TestRun:
    def test_starts_and_stops_controller(self) -> None:
        controller = MagicMock()
        server = MagicMock()

        with patch("beacon.cli.RegistrationController", return_value=controller), \
                patch("beacon.cli.start_callback_server", return_value=server) as start_server, \
                patch("beacon.cli.signal") as signal_mod, \
                patch("beacon.cli.threading") as threading_mod:
            threading_mod.Event.return_value.wait.return_value = True
            main(["run", *REQUIRED, "--http-port", "9000"])

        assert signal_mod.signal.call_count == 2

        controller.start.assert_called_once_with()
        controller.stop.assert_called_once_with()
        server.shutdown.assert_called_once_with()
        args, kwargs = start_server.call_args
        assert args[0] == "/cryostat-discovery"
        assert kwargs["port"] == 9000


class TestNoCommand:
    def test_prints_help_and_exits(self) -> None:
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1
