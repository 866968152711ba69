"""Tests for the development server entry point."""

import signal
from unittest.mock import MagicMock, patch

import pytest

from yelp_camp import main as main_module
from yelp_camp.context import get_runtime


class TestInstallShutdownHandlers:
    """Tests for install_shutdown_handlers."""

    def test_registers_signals_and_atexit(self) -> None:
        """SIGTERM, SIGINT and interpreter exit all close the runtime."""
        runtime = MagicMock()
        with patch.object(main_module.signal, "signal") as mock_signal, patch.object(
            main_module.atexit, "register"
        ) as mock_register:
            main_module.install_shutdown_handlers(runtime)

        registered = {call.args[0] for call in mock_signal.call_args_list}
        assert registered == {signal.SIGTERM, signal.SIGINT}
        mock_register.assert_called_once_with(runtime.close)

    def test_signal_handler_closes_and_exits(self) -> None:
        """The installed handler closes the runtime and exits cleanly."""
        runtime = MagicMock()
        with patch.object(main_module.signal, "signal") as mock_signal, patch.object(
            main_module.atexit, "register"
        ):
            main_module.install_shutdown_handlers(runtime)
        handler = mock_signal.call_args_list[0].args[1]

        with pytest.raises(SystemExit) as exc_info:
            handler(signal.SIGTERM, None)

        runtime.close.assert_called_once()
        assert exc_info.value.code == 0


class TestMain:  # pylint: disable=too-few-public-methods
    """Tests for main()."""

    def test_main_runs_app_on_configured_port(self, make_app) -> None:
        """main() builds the app and serves it on the settings' host and port."""
        app = make_app(port=4321)
        with patch.object(main_module, "create_app", return_value=app), patch.object(
            main_module, "install_shutdown_handlers"
        ) as mock_install, patch.object(app, "run") as mock_run:
            assert main_module.main() == 0

        mock_install.assert_called_once_with(get_runtime(app))
        mock_run.assert_called_once_with(host="127.0.0.1", port=4321, debug=False)
