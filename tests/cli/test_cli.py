"""Tests for the versionsync command line."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from tests.fixtures import (
    ASSEMBLY_INFO,
    SHARED_ASSEMBLY_INFO,
    InMemoryProvider,
    write_tree,
)
from versionsync.cli.main import cli
from versionsync.vcs.provider import WorkingFolder

# variables a build agent would set; cleared so the host cannot leak in
AGENT_VARIABLES = [
    "BUILD_SOURCESDIRECTORY",
    "AGENT_TEMPDIRECTORY",
    "SYSTEM_TEAMFOUNDATIONCOLLECTIONURI",
    "BUILD_REPOSITORY_TFVC_WORKSPACE",
    "BUILD_SOURCEBRANCH",
    "BUILD_BUILDNUMBER",
    "AGENT_NAME",
    "SYSTEM_ACCESSTOKEN",
    "VERSIONSYNC_INCREMENT_BUILD",
    "VERSIONSYNC_INCREMENT_REVISION",
    "VERSIONSYNC_SKIP_CHECKIN",
    "VERSIONSYNC_DO_NOT_INCREMENT",
    "VERSIONSYNC_USE_CUSTOM_FILTER",
    "VERSIONSYNC_CUSTOM_FILTER",
    "VERSIONSYNC_PROVIDER",
    "VERSIONSYNC_VARIABLE_NAME",
    "VERSIONSYNC_TIMEOUT",
]


@pytest.fixture
def sources(tmp_path):
    root = (tmp_path / "s").resolve()
    write_tree(
        root,
        {
            "SharedAssemblyInfo.cs": SHARED_ASSEMBLY_INFO,
            "Core/AssemblyInfo.cs": ASSEMBLY_INFO,
        },
    )
    temp = tmp_path / "t"
    temp.mkdir()
    return root, temp


def _invoke(tmp_path, args, **env):
    runner = CliRunner()
    environment = {name: None for name in AGENT_VARIABLES}
    environment["VERSIONSYNC_CONFIG"] = str(tmp_path / "versionsync.cfg")
    environment.update(env)
    with runner.isolated_filesystem(temp_dir=tmp_path):
        return runner.invoke(cli, args, env=environment)


@pytest.mark.short
class TestRunCommand:
    def test_agent_environment(self, tmp_path, sources, capture_logs):
        root, temp = sources
        provider = InMemoryProvider(
            files={
                "$/Proj/SharedAssemblyInfo.cs": b"",
                "$/Proj/Core/AssemblyInfo.cs": b"",
            },
            folders=[WorkingFolder("$/Proj", str(root))],
        )

        with patch("versionsync.cli.run.get_provider", return_value=provider) as gp:
            result = _invoke(
                tmp_path,
                ["run"],
                BUILD_SOURCESDIRECTORY=str(root),
                AGENT_TEMPDIRECTORY=str(temp),
                SYSTEM_TEAMFOUNDATIONCOLLECTIONURI="https://dev.azure.com/contoso/",
                BUILD_REPOSITORY_TFVC_WORKSPACE="ws_1_2",
                BUILD_BUILDNUMBER="CI_1.0.0.0",
                AGENT_NAME="agent-1",
                SYSTEM_ACCESSTOKEN="token",
            )

        assert result.exit_code == 0, result.output
        assert "##vso[build.updatebuildnumber]CI_1.2.4.0" in result.output
        assert "##vso[task.setvariable variable=BuildVersion]1.2.4.0" in result.output

        settings = gp.call_args.args[0]
        assert settings.workspace == "ws_1_2"
        assert settings.agent_name == "agent-1"
        assert settings.access_token.get_secret_value() == "token"

        assert 'AssemblyVersion("1.2.4.0")' in (root / "Core/AssemblyInfo.cs").read_text()
        assert provider.changesets[0][0] == "Update version to 1.2.4.0 ***NO_CI***"
        assert "Checked in as 101." in capture_logs.getvalue()

    def test_do_not_increment_needs_no_endpoint(self, tmp_path, sources):
        root, temp = sources
        with patch("versionsync.cli.run.get_provider") as gp:
            result = _invoke(
                tmp_path,
                ["run", "--source-dir", str(root), "--temp-dir", str(temp), "--do-not-increment"],
            )

        assert result.exit_code == 0, result.output
        assert "##vso[task.setvariable variable=BuildVersion]1.2.3.4" in result.output
        gp.assert_not_called()

    def test_flags_from_environment(self, tmp_path, sources):
        root, temp = sources
        result = _invoke(
            tmp_path,
            ["run"],
            BUILD_SOURCESDIRECTORY=str(root),
            AGENT_TEMPDIRECTORY=str(temp),
            VERSIONSYNC_INCREMENT_REVISION="false",
            VERSIONSYNC_SKIP_CHECKIN="true",
        )

        assert result.exit_code == 0, result.output
        assert "##vso[task.setvariable variable=BuildVersion]1.2.4.4" in result.output

    def test_custom_variable_and_filter(self, tmp_path, sources):
        root, temp = sources
        result = _invoke(
            tmp_path,
            [
                "run",
                "--source-dir",
                str(root),
                "--temp-dir",
                str(temp),
                "--skip-checkin",
                "--variable-name",
                "ProductVersion",
                "--use-custom-filter",
                "--custom-filter",
                "Contoso",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "##vso[task.setvariable variable=ProductVersion]1.2.4.0" in result.output
        # Core/AssemblyInfo.cs does not mention Contoso
        assert 'AssemblyVersion("1.0.0.0")' in (root / "Core/AssemblyInfo.cs").read_text()

    def test_variable_name_from_user_config(self, tmp_path, sources):
        root, temp = sources
        (tmp_path / "versionsync.cfg").write_text("[publish]\nvariable = AppVersion\n")
        result = _invoke(
            tmp_path,
            ["run", "--source-dir", str(root), "--temp-dir", str(temp), "--skip-checkin"],
        )

        assert result.exit_code == 0, result.output
        assert "variable=AppVersion]1.2.4.0" in result.output

    def test_dry_run(self, tmp_path, sources):
        root, temp = sources
        result = _invoke(
            tmp_path,
            ["run", "--source-dir", str(root), "--temp-dir", str(temp), "--dry-run"],
        )

        assert result.exit_code == 0, result.output
        assert (root / "SharedAssemblyInfo.cs").read_text() == SHARED_ASSEMBLY_INFO

    def test_missing_source_dir(self, tmp_path, capture_logs):
        result = _invoke(tmp_path, ["run", "--skip-checkin"])
        assert result.exit_code == 1
        assert "Missing required configuration: source directory" in capture_logs.getvalue()

    def test_missing_workspace(self, tmp_path, sources, capture_logs):
        root, temp = sources
        result = _invoke(
            tmp_path,
            ["run", "--source-dir", str(root), "--collection-url", "https://tfs/"],
        )
        assert result.exit_code == 1
        assert "workspace" in capture_logs.getvalue()

    def test_invalid_custom_filter(self, tmp_path, sources, capture_logs):
        root, _ = sources
        result = _invoke(
            tmp_path,
            [
                "run",
                "--source-dir",
                str(root),
                "--skip-checkin",
                "--use-custom-filter",
                "--custom-filter",
                "(",
            ],
        )
        assert result.exit_code == 1
        assert "custom filter" in capture_logs.getvalue()

    def test_invalid_timeout(self, tmp_path, sources, capture_logs):
        root, _ = sources
        result = _invoke(
            tmp_path,
            ["run", "--source-dir", str(root), "--skip-checkin", "--timeout", "soon"],
        )
        assert result.exit_code == 1
        assert "command timeout" in capture_logs.getvalue()

    def test_no_version_found_is_not_an_error(self, tmp_path, capture_logs):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = _invoke(tmp_path, ["run", "--source-dir", str(empty), "--skip-checkin"])
        assert result.exit_code == 0
        assert "##vso" not in result.output
        assert "Nothing to update" in capture_logs.getvalue()

    def test_checkin_failure_exits_1(self, tmp_path, sources, capture_logs):
        root, temp = sources
        provider = InMemoryProvider(
            files={
                "$/Proj/SharedAssemblyInfo.cs": b"",
                "$/Proj/Core/AssemblyInfo.cs": b"",
            },
            folders=[WorkingFolder("$/Proj", str(root))],
            fail_on={"submit"},
        )
        with patch("versionsync.cli.run.get_provider", return_value=provider):
            result = _invoke(
                tmp_path,
                [
                    "run",
                    "--source-dir",
                    str(root),
                    "--temp-dir",
                    str(temp),
                    "--collection-url",
                    "https://tfs/",
                    "--workspace",
                    "ws",
                ],
            )

        assert result.exit_code == 1
        assert "check-in failed" in capture_logs.getvalue()
        assert provider.workspace is None

    def test_unwritable_version_file_exits_1(self, tmp_path, sources, capture_logs):
        root, temp = sources
        error = PermissionError(13, "Permission denied", str(root / "Core/AssemblyInfo.cs"))
        with patch("versionsync.sync.write_source", side_effect=error):
            result = _invoke(
                tmp_path,
                ["run", "--source-dir", str(root), "--temp-dir", str(temp), "--skip-checkin"],
            )

        assert result.exit_code == 1
        assert "could not update version files" in capture_logs.getvalue()
        assert "Permission denied" in capture_logs.getvalue()

    def test_git_branch_from_full_source_ref(self, tmp_path, sources):
        root, temp = sources
        with patch("versionsync.cli.run.get_provider") as gp:
            gp.return_value.working_folders.return_value = []
            result = _invoke(
                tmp_path,
                ["run", "--provider", "git"],
                BUILD_SOURCESDIRECTORY=str(root),
                AGENT_TEMPDIRECTORY=str(temp),
                BUILD_SOURCEBRANCH="refs/heads/release/1.2",
            )

        assert result.exit_code == 0, result.output
        assert gp.call_args.args[0].branch == "release/1.2"


@pytest.mark.short
class TestShowCommand:
    def test_show(self, tmp_path, sources):
        root, _ = sources
        result = _invoke(tmp_path, ["show", "--source-dir", str(root)])
        assert result.exit_code == 0, result.output
        last_line = result.output.strip().splitlines()[-1]
        assert last_line == f"1.2.3.4\t{root / 'SharedAssemblyInfo.cs'}"

    def test_show_nothing(self, tmp_path):
        result = _invoke(tmp_path, ["show", "--source-dir", str(tmp_path)])
        assert result.exit_code == 0


@pytest.mark.short
class TestMain:
    def test_version(self, tmp_path):
        result = _invoke(tmp_path, ["--version"])
        assert result.exit_code == 0
        assert "versionsync" in result.output

    def test_help_lists_commands(self, tmp_path):
        result = _invoke(tmp_path, ["--help"])
        assert result.exit_code == 0
        assert "run" in result.output
        assert "show" in result.output

    def test_env_file_is_loaded(self, tmp_path, sources):
        root, temp = sources
        runner = CliRunner()
        environment = {name: None for name in AGENT_VARIABLES}
        with runner.isolated_filesystem(temp_dir=tmp_path) as cwd:
            with open(f"{cwd}/.env", "w") as f:
                f.write(f"BUILD_SOURCESDIRECTORY={root}\n")
                f.write(f"AGENT_TEMPDIRECTORY={temp}\n")
                f.write("VERSIONSYNC_SKIP_CHECKIN=true\n")
            # the runner restores every variable named in env afterwards
            result = runner.invoke(cli, ["run"], env=environment)

        assert result.exit_code == 0, result.output
        assert "1.2.4.0" in result.output
