"""Tests for the subcommand dispatcher."""

import pytest


class TestMainDispatcher:
    def test_no_subcommand_shows_help(self, capsys):
        from klippod.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code != 0  # should error without subcommand

    @pytest.mark.parametrize("command", ["render", "fetch", "preview"])
    def test_subcommand_exists(self, command):
        """Subcommand is recognized, then fails on its own missing args."""
        from klippod.main import main

        with pytest.raises(SystemExit) as exc_info:
            main([command])
        assert exc_info.value.code == 2

    def test_subcommand_help(self, capsys):
        from klippod.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["render", "--help"])
        assert exc_info.value.code == 0
        assert "--facecam-zoom" in capsys.readouterr().out

    def test_list_subcommand(self, tmp_path, capsys):
        from klippod.main import main

        main(["list", "--output-dir", str(tmp_path)])
        assert "No clips" in capsys.readouterr().out

    def test_invalid_subcommand_errors(self, capsys):
        from klippod.main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["nonexistent"])
        assert exc_info.value.code != 0


class TestServe:
    def test_serve_uses_settings(self, tmp_path, capsys):
        from unittest.mock import patch

        from klippod.main import main

        with patch("flask_socketio.SocketIO.run") as run:
            main([
                "serve", "--port", "4555", "--host", "127.0.0.1",
                "--output-dir", str(tmp_path / "out"), "--cache-dir", str(tmp_path / "cache"),
            ])
        assert run.call_args.kwargs["port"] == 4555
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert (tmp_path / "out").is_dir()
        assert (tmp_path / "cache").is_dir()
        assert "running on port 4555" in capsys.readouterr().out
