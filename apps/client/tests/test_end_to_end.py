"""Full sign runs: CLI arguments in, overwritten files and exit code out.

These tests are synchronous because `run()` drives its own event loop.
"""

import logging
import os
from pathlib import Path

import pytest

from signclient import cli
from signclient.config import ClientSettings
from signclient.errors import ExitCode


@pytest.fixture
def workdir(tmp_path, monkeypatch) -> Path:
    project = tmp_path / "project"
    (project / "build").mkdir(parents=True)
    (project / "build" / "app.exe").write_bytes(b"MZ-app")
    (project / "build" / "lib.dll").write_bytes(b"MZ-lib")
    monkeypatch.chdir(project)
    return project


class TestSuccessfulSign:
    def test_signs_and_overwrites_original(self, workdir, client_settings, transport, sign_tool):
        code = cli.run(["sign", "/a", "/fd", "sha256", "build\\app.exe"], client_settings, transport)

        assert code == ExitCode.OK
        assert (workdir / "build" / "app.exe").read_bytes() == b"MZ-app" + sign_tool.marker
        assert (workdir / "build" / "lib.dll").read_bytes() == b"MZ-lib"
        assert sign_tool.subcommands == ["/a /fd sha256"]

    def test_glob_signs_every_match(self, workdir, client_settings, transport, sign_tool):
        code = cli.run(["sign", "/a", "build/*.*"], client_settings, transport)

        assert code == ExitCode.OK
        assert (workdir / "build" / "lib.dll").read_bytes().endswith(sign_tool.marker)

    def test_quoted_values_reach_the_tool(self, workdir, client_settings, transport, sign_tool):
        cli.run(["sign", "/n", "My Company", "build\\app.exe"], client_settings, transport)
        assert sign_tool.subcommands == ['/n "My Company"']

    def test_server_and_client_leave_nothing_behind(
        self, workdir, client_settings, server_settings, transport
    ):
        cli.run(["sign", "/a", "build\\app.exe"], client_settings, transport)

        assert list(Path(server_settings.storage_dir).iterdir()) == []
        assert list(Path(server_settings.work_dir).iterdir()) == []
        assert list(Path(client_settings.temp_dir).iterdir()) == []


    def test_epoch_timestamp_is_signed(self, workdir, client_settings, transport, sign_tool):
        os.utime(workdir / "build" / "app.exe", (0, 0))

        code = cli.run(["sign", "/a", "build\\app.exe"], client_settings, transport)

        assert code == ExitCode.OK
        assert (workdir / "build" / "app.exe").read_bytes().endswith(sign_tool.marker)


class TestRejectedBeforeNetwork:
    def test_rejected_option(self, workdir, client_settings, transport, sign_tool, server_settings):
        code = cli.run(["sign", "/p", "secret", "nonexistent\\*.exe"], client_settings, transport)

        assert code == ExitCode.UNSUPPORTED_SUBCOMMAND
        assert sign_tool.subcommands == []
        assert not Path(server_settings.storage_dir).exists()

    def test_server_url_not_configured(self, workdir, transport):
        settings = ClientSettings(server_url="  ")
        code = cli.run(["sign", "/a", "build\\app.exe"], settings, transport)
        assert code == ExitCode.SERVER_URL_NOT_CONFIGURED

    def test_no_arguments(self, client_settings, transport):
        assert cli.run([], client_settings, transport) == ExitCode.NO_ARGUMENTS

    def test_no_files(self, workdir, client_settings, transport):
        code = cli.run(["sign", "/a", "*.sys"], client_settings, transport)
        assert code == ExitCode.NO_FILES_MATCHED


class TestSignToolFailure:
    def test_failure_is_reported_and_originals_kept(
        self, workdir, client_settings, server_settings, transport, sign_tool, caplog
    ):
        caplog.set_level(logging.INFO)
        sign_tool.exit_code = 3
        sign_tool.stdout = "Done Adding Additional Store"
        sign_tool.stderr = "cert not found"

        code = cli.run(["sign", "/a", "build\\app.exe"], client_settings, transport)

        assert code == ExitCode.SIGN_TOOL_INVALID_EXIT_CODE
        assert (workdir / "build" / "app.exe").read_bytes() == b"MZ-app"
        assert "cert not found" in caplog.text
        assert "Done Adding Additional Store" in caplog.text
        assert list(Path(server_settings.storage_dir).iterdir()) == []


class TestMain:
    def test_main_reads_settings_from_environment(self, workdir, monkeypatch):
        monkeypatch.delenv("REMOTESIGN_SERVER_URL", raising=False)
        assert cli.main(["sign", "/a", "build\\app.exe"]) == ExitCode.SERVER_URL_NOT_CONFIGURED

    def test_main_unsupported_command(self, monkeypatch):
        monkeypatch.setenv("REMOTESIGN_SERVER_URL", "http://signer.test")
        assert cli.main(["verify", "/pa", "app.exe"]) == ExitCode.UNSUPPORTED_COMMAND
