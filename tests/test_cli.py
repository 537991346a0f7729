"""Unit tests for tasktrack.cli — command parsing and execution."""

import os

import pytest
from unittest.mock import patch

import tasktrack.cli as cli_mod
import tasktrack.engine.config as cfg_mod
from tasktrack.db.models import User
from tasktrack.db.session import init_db, session_scope


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "tasktrack.yaml"
    path.write_text(
        f"database:\n  url: sqlite:///{tmp_path / 'cli.db'}\n"
        "security:\n  bcrypt_rounds: 4\n",
        encoding="utf-8",
    )
    return path


def _users(tmp_path):
    factory = init_db(f"sqlite:///{tmp_path / 'cli.db'}")
    with session_scope(factory) as s:
        return [(u.email, u.role) for u in s.query(User).all()]


class TestCLIParsing:

    def test_module_has_expected_commands(self):
        assert hasattr(cli_mod, "cmd_init_db")
        assert hasattr(cli_mod, "cmd_create_admin")
        assert hasattr(cli_mod, "cmd_serve")

    def test_no_command_prints_help(self, capsys):
        assert cli_mod.main([]) == 0
        assert "tasktrack" in capsys.readouterr().out


class TestInitDb:

    def test_creates_tables(self, config_file, tmp_path):
        assert cli_mod.main(["--config", str(config_file), "init-db"]) == 0
        assert (tmp_path / "cli.db").exists()
        assert _users(tmp_path) == []

    def test_bad_config(self, tmp_path, capsys):
        path = tmp_path / "tasktrack.yaml"
        path.write_text("environment: nowhere\n", encoding="utf-8")
        assert cli_mod.main(["--config", str(path), "init-db"]) == 1
        assert "[ERROR]" in capsys.readouterr().out


class TestCreateAdmin:

    def test_creates_admin(self, config_file, tmp_path):
        rc = cli_mod.main([
            "--config", str(config_file), "create-admin",
            "--email", "Root@Example.com", "--password", "Adm1nPass",
        ])
        assert rc == 0
        assert _users(tmp_path) == [("root@example.com", "admin")]

    def test_rerun_resets_password(self, config_file, tmp_path):
        args = ["--config", str(config_file), "create-admin", "--email", "root@example.com"]
        assert cli_mod.main(args + ["--password", "Adm1nPass"]) == 0
        assert cli_mod.main(args + ["--password", "N3wPassword"]) == 0
        assert _users(tmp_path) == [("root@example.com", "admin")]

    def test_weak_password(self, config_file, capsys):
        rc = cli_mod.main([
            "--config", str(config_file), "create-admin",
            "--email", "root@example.com", "--password", "weak",
        ])
        assert rc == 1
        assert "Password must be" in capsys.readouterr().out

    def test_invalid_email(self, config_file):
        rc = cli_mod.main([
            "--config", str(config_file), "create-admin",
            "--email", "not-an-email", "--password", "Adm1nPass",
        ])
        assert rc == 1

    def test_prompts_for_password(self, config_file, tmp_path):
        with patch("getpass.getpass", side_effect=["Adm1nPass", "Adm1nPass"]):
            rc = cli_mod.main([
                "--config", str(config_file), "create-admin", "--email", "root@example.com",
            ])
        assert rc == 0
        assert _users(tmp_path) == [("root@example.com", "admin")]


class TestServe:

    def test_runs_uvicorn_with_config(self, config_file):
        with patch("uvicorn.run") as run:
            rc = cli_mod.main(["--config", str(config_file), "serve", "--port", "8123"])
        assert rc == 0
        _, kwargs = run.call_args
        assert kwargs["port"] == 8123
        assert kwargs["host"] == "0.0.0.0"

    def test_reload_hands_config_path_to_worker(self, config_file, monkeypatch):
        monkeypatch.chdir(config_file.parent.parent)
        with patch("uvicorn.run") as run:
            rc = cli_mod.main(["--config", str(config_file), "serve", "--reload"])
        assert rc == 0
        args, kwargs = run.call_args
        assert args == ("tasktrack.api.app:create_app",)
        assert kwargs["factory"] is True
        assert os.environ["TASKTRACK_CONFIG"] == str(config_file)

        cfg_mod._config = None
        assert cfg_mod.get_config().database.url.endswith("cli.db")
