"""Unit tests for the ftpdeploy CLI commands."""

import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner
from conftest import FakeFtpSession

from ftpdeploy.cli import main
from ftpdeploy.exceptions import FtpAuthenticationError, VcsError
from ftpdeploy.sync import DeployResult, ExistingFilePolicy, RunStatus
from ftpdeploy.sync.result import EntryFailure, empty_stats


@pytest.fixture
def runner():
    """Provide a Click CLI test runner without FTPDEPLOY_* variables."""
    return CliRunner(
        env={
            "FTPDEPLOY_HOST": None,
            "FTPDEPLOY_USER": None,
            "FTPDEPLOY_PASSWORD": None,
            "FTPDEPLOY_PORT": None,
        }
    )


@pytest.fixture
def mock_config():
    """Mock the stored configuration."""
    with patch("ftpdeploy.cli.config") as mock:
        mock.host = None
        mock.user = None
        mock.password = None
        mock.port = 21
        mock.get_config_path.return_value = Path("/mock/config")
        yield mock


@pytest.fixture
def mock_deploy():
    with patch("ftpdeploy.cli.deploy") as mock:
        stats = empty_stats()
        stats.update(entries=2, uploads=2)
        mock.return_value = DeployResult(status=RunStatus.SUCCESS, stats=stats)
        yield mock


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "init" in result.output
        assert "deploy" in result.output
        assert "status" in result.output

    def test_deploy_help(self, runner):
        result = runner.invoke(main, ["deploy", "--help"])

        assert result.exit_code == 0
        assert "--skip-size-equal" in result.output
        assert "--git-diff" in result.output
        assert "--dry-run" in result.output


class TestInitCommand:
    """Tests for the init command."""

    def test_init_saves_settings(self, runner, mock_config):
        result = runner.invoke(main, ["init"], input="ftp.example.com\nweb\nsecret\n")

        assert result.exit_code == 0
        assert "Configuration saved successfully" in result.output
        mock_config.save.assert_called_once_with(
            host="ftp.example.com", user="web", password="secret", port="21"
        )

    def test_init_save_failure(self, runner, mock_config):
        mock_config.save.side_effect = OSError("read-only")

        result = runner.invoke(main, ["init", "-H", "h", "-u", "u", "-p", "x"])

        assert result.exit_code == 1
        assert "Failed to save configuration" in result.output


class TestDeployCommand:
    """Tests for the deploy command."""

    def test_missing_host(self, runner, mock_config, mock_deploy, tmp_path):
        result = runner.invoke(main, ["deploy", str(tmp_path)])

        assert result.exit_code == 1
        assert "No FTP host configured" in result.output
        mock_deploy.assert_not_called()

    def test_builds_configuration(self, runner, mock_config, mock_deploy, tmp_path):
        result = runner.invoke(
            main,
            [
                "deploy",
                str(tmp_path),
                "-H",
                "ftp.example.com",
                "-u",
                "web",
                "-p",
                "secret",
                "-t",
                "www/",
                "-e",
                "*.log",
                "--skip-size-equal",
                "--keep-existing",
                "--follow-links",
            ],
        )

        assert result.exit_code == 0, result.output
        config = mock_deploy.call_args[0][0]
        assert config.host == "ftp.example.com"
        assert config.user == "web"
        assert config.password == "secret"
        assert config.target_directory == "/www"
        assert config.sources == (Path(tmp_path),)
        assert config.exclude == ("*.log",)
        assert config.skip_size_equal is True
        assert config.existing_files is ExistingFilePolicy.KEEP
        assert config.follow_links is True
        assert "Deploy Complete" in result.output

    def test_uses_stored_configuration(self, runner, mock_config, mock_deploy, tmp_path):
        mock_config.host = "stored.example.com"
        mock_config.user = "stored"
        mock_config.password = "pw"

        result = runner.invoke(main, ["deploy", str(tmp_path)])

        assert result.exit_code == 0
        config = mock_deploy.call_args[0][0]
        assert config.host == "stored.example.com"
        assert config.user == "stored"

    def test_prompts_for_password(self, runner, mock_config, mock_deploy, tmp_path):
        result = runner.invoke(
            main, ["deploy", str(tmp_path), "-H", "h", "-u", "web"], input="typed\n"
        )

        assert result.exit_code == 0
        assert mock_deploy.call_args[0][0].password == "typed"

    def test_nothing_to_deploy(self, runner, mock_config, mock_deploy):
        result = runner.invoke(main, ["deploy", "-H", "h", "-p", "x"])

        assert result.exit_code == 1
        assert "Nothing to deploy" in result.output
        mock_deploy.assert_not_called()

    def test_partial_failure_lists_paths(self, runner, mock_config, mock_deploy, tmp_path):
        mock_deploy.return_value = DeployResult(
            status=RunStatus.PARTIAL_FAILURE,
            failures=[EntryFailure("css/site.css", "553 denied")],
        )

        result = runner.invoke(main, ["deploy", str(tmp_path), "-H", "h", "-p", "x"])

        assert result.exit_code == 1
        assert "Deploy Completed With Errors" in result.output
        assert "css/site.css: 553 denied" in result.output

    def test_fatal_result(self, runner, mock_config, mock_deploy, tmp_path):
        mock_deploy.return_value = DeployResult.fatal("Connection refused")

        result = runner.invoke(main, ["deploy", str(tmp_path), "-H", "h", "-p", "x"])

        assert result.exit_code == 1
        assert "Error: Connection refused" in result.output

    def test_dry_run_summary(self, runner, mock_config, mock_deploy, tmp_path):
        mock_deploy.return_value = DeployResult(status=RunStatus.SUCCESS, dry_run=True)

        result = runner.invoke(
            main, ["deploy", str(tmp_path), "-H", "h", "-p", "x", "--dry-run"]
        )

        assert result.exit_code == 0
        assert mock_deploy.call_args[0][0].dry_run is True
        assert "Dry Run Complete" in result.output

    def test_json_output(self, runner, mock_config, mock_deploy, tmp_path):
        result = runner.invoke(
            main, ["--json", "deploy", str(tmp_path), "-H", "h", "-p", "x"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "success"
        assert data["stats"]["uploads"] == 2
        assert data["failures"] == []


class TestStatusCommand:
    """Tests for the status command."""

    @pytest.fixture
    def session(self):
        session = FakeFtpSession(directories={"/www"})
        session.add_file("/www/.git-commit", b"abc123\n")
        return session

    @patch("ftpdeploy.cli.GitRepository")
    @patch("ftpdeploy.cli.connect")
    def test_up_to_date_json(self, mock_connect, mock_repo, runner, mock_config, session):
        mock_connect.return_value = session
        mock_repo.return_value.current_revision_id.return_value = "abc123"

        result = runner.invoke(
            main, ["--json", "status", "-H", "h", "-p", "x", "-t", "/www"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data == {
            "target": "/www",
            "remote_revision": "abc123",
            "local_revision": "abc123",
            "up_to_date": True,
        }
        assert session.closed is True

    @patch("ftpdeploy.cli.GitRepository")
    @patch("ftpdeploy.cli.connect")
    def test_behind(self, mock_connect, mock_repo, runner, mock_config, session):
        mock_connect.return_value = session
        mock_repo.return_value.current_revision_id.return_value = "def456"

        result = runner.invoke(main, ["status", "-H", "h", "-p", "x", "-t", "/www"])

        assert result.exit_code == 0
        assert "abc123" in result.output
        assert "behind" in result.output

    @patch("ftpdeploy.cli.GitRepository")
    @patch("ftpdeploy.cli.connect")
    def test_no_marker_outside_repository(
        self, mock_connect, mock_repo, runner, mock_config
    ):
        mock_connect.return_value = FakeFtpSession()
        mock_repo.return_value.current_revision_id.side_effect = VcsError("not a repo")

        result = runner.invoke(main, ["status", "-H", "h", "-p", "x"])

        assert result.exit_code == 0
        assert "(none)" in result.output
        assert "(not a git repository)" in result.output

    @patch("ftpdeploy.cli.GitRepository", Mock())
    @patch("ftpdeploy.cli.connect")
    def test_login_rejected(self, mock_connect, runner, mock_config):
        mock_connect.side_effect = FtpAuthenticationError("530 Login incorrect")

        result = runner.invoke(main, ["status", "-H", "h", "-p", "x"])

        assert result.exit_code == 1
        assert "530 Login incorrect" in result.output
