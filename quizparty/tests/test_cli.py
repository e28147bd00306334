"""
Tests for the command-line interface.
"""

import pytest

from ..cli import main


class TestCli:
    def test_config_command(self, monkeypatch, capsys):
        monkeypatch.setenv("QUIZ_MASTER_PASSWORD", "hunter2")
        monkeypatch.setenv("QUIZ_STARTING_POINTS", "7")
        main(["config"])

        out = capsys.readouterr().out
        assert "starting_points: 7" in out
        assert "master_password: ********" in out
        assert "hunter2" not in out

    def test_no_command_prints_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "serve" in capsys.readouterr().out

    def test_serve_passes_reload_to_uvicorn(self, monkeypatch):
        import uvicorn

        calls = []
        monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
        main(["serve", "--port", "4000", "--reload"])

        app, kwargs = calls[0]
        assert app == "quizparty.api.app:app"
        assert kwargs["reload"] is True
        assert kwargs["port"] == 4000

    def test_serve_without_reload_builds_app(self, monkeypatch):
        import uvicorn

        calls = []
        monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
        main(["serve", "--log-level", "warning"])

        app, kwargs = calls[0]
        assert not isinstance(app, str)
        assert kwargs["reload"] is False
        assert kwargs["log_level"] == "warning"
