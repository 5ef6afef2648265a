"""Tests for the command-line entry point."""

from unittest.mock import patch

import pytest

from agentloom import __version__
from agentloom.cli import main


class TestMain:
    def test_defaults(self) -> None:
        with patch("agentloom.cli.uvicorn.run") as mock_run:
            assert main([]) == 0
        mock_run.assert_called_once_with(
            "agentloom.server.app:app",
            host="127.0.0.1",
            port=8000,
            reload=False,
            log_level=None,
        )

    def test_custom_options(self) -> None:
        with patch("agentloom.cli.uvicorn.run") as mock_run:
            main(["--host", "0.0.0.0", "--port", "9001", "--reload", "--log-level", "debug"])
        kwargs = mock_run.call_args.kwargs
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 9001
        assert kwargs["reload"] is True
        assert kwargs["log_level"] == "debug"

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_rejects_unknown_log_level(self) -> None:
        with patch("agentloom.cli.uvicorn.run") as mock_run, pytest.raises(SystemExit):
            main(["--log-level", "verbose"])
        mock_run.assert_not_called()
