# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.
from __future__ import annotations

from unittest import mock

import pytest
from click.testing import CliRunner

from dependabot_triage.commands.main_command import main
from dependabot_triage.triage.models import OrganizationProbe, RepositoryRef

TOKEN = "ghp_commandtoken"
WIDGETS = RepositoryRef(owner="acme", name="widgets")


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_API_URL", raising=False)
    return CliRunner()


@pytest.fixture
def patched_remote(remote):
    with mock.patch(
        "dependabot_triage.commands.triage_commands.GitHubRemote", return_value=remote
    ) as github_remote:
        yield github_remote


class TestRunCommand:
    def test_triages_and_prints_summary(self, runner, remote, patched_remote, make_pull):
        remote.add_pull(WIDGETS, make_pull(number=1, head_sha="green"), mergeable_state="clean")
        remote.add_pull(WIDGETS, make_pull(number=2, head_sha="old"), mergeable_state="behind")
        remote.statuses["green"] = "success"

        result = runner.invoke(main, ["run", "--github-token", TOKEN, "-r", "acme/widgets"])

        assert result.exit_code == 0, result.output
        patched_remote.assert_called_once_with(TOKEN, "https://api.github.com")
        assert "PR #1 of acme/widgets: approved" in result.output
        assert "PR #2 of acme/widgets: branch behind base, update requested" in result.output
        assert "Summary" in result.output
        assert len(remote.calls_to("create_review")) == 1
        assert len(remote.calls_to("update_branch")) == 1

    def test_dry_run_changes_nothing(self, runner, remote, patched_remote, make_pull):
        remote.add_pull(WIDGETS, make_pull(number=1, head_sha="green"), mergeable_state="clean")
        remote.add_pull(WIDGETS, make_pull(number=2, head_sha="old"), mergeable_state="behind")
        remote.statuses["green"] = "success"

        result = runner.invoke(main, ["run", "--github-token", TOKEN, "-r", "acme/widgets", "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "Summary (dry run)" in result.output
        assert remote.calls_to("create_review") == []
        assert remote.calls_to("update_branch") == []

    def test_reads_repositories_from_file(self, runner, remote, patched_remote, make_pull):
        remote.add_pull(RepositoryRef.parse("other/tools"), make_pull(author="octocat"))
        with runner.isolated_filesystem():
            with open("repos.txt", "w") as f:
                f.write("# watched\nother/tools\n")
            result = runner.invoke(main, ["run", "--github-token", TOKEN])

        assert result.exit_code == 0, result.output
        assert remote.calls_to("list_open_pull_requests") == [("list_open_pull_requests", "other/tools")]

    def test_access_blocked_repository(self, runner, remote, patched_remote, make_pull):
        remote.org_probes["acme"] = OrganizationProbe.FORBIDDEN

        result = runner.invoke(main, ["run", "--github-token", TOKEN, "-r", "acme/widgets"])

        assert result.exit_code == 0, result.output
        assert "requires step-up authorization" in result.output
        assert remote.calls_to("list_open_pull_requests") == []

    def test_checks_ci_source(self, runner, remote, patched_remote, make_pull):
        remote.add_pull(WIDGETS, make_pull(head_sha="abc"))

        result = runner.invoke(
            main, ["run", "--github-token", TOKEN, "-r", "acme/widgets", "--ci-source", "checks"]
        )

        assert result.exit_code == 0, result.output
        assert remote.calls_to("list_check_runs") == [("list_check_runs", "acme/widgets", "abc")]
        assert remote.calls_to("get_combined_status") == []

    def test_missing_token_exits(self, runner, patched_remote):
        with runner.isolated_filesystem(), mock.patch(
            "dependabot_triage.utils.credentials._token_from_gh_cli", return_value=None
        ):
            result = runner.invoke(main, ["run", "-r", "acme/widgets"])

        assert result.exit_code == 1
        assert "GitHub token not found" in result.output
        patched_remote.assert_not_called()

    def test_token_from_environment(self, runner, remote, patched_remote):
        result = runner.invoke(main, ["run", "-r", "acme/widgets"], env={"GITHUB_TOKEN": TOKEN})

        assert result.exit_code == 0, result.output
        patched_remote.assert_called_once_with(TOKEN, "https://api.github.com")

    def test_invalid_bot_author_exits(self, runner, patched_remote):
        result = runner.invoke(
            main, ["run", "--github-token", TOKEN, "-r", "acme/widgets", "--bot-author", " "]
        )

        assert result.exit_code == 1
        assert "Invalid settings" in result.output

    def test_fatal_error_hides_token(self, runner, patched_remote):
        patched_remote.side_effect = RuntimeError(f"cannot use {TOKEN}")

        result = runner.invoke(main, ["run", "--github-token", TOKEN, "-r", "acme/widgets"])

        assert result.exit_code == 1
        assert "Fatal error: cannot use ***" in result.output
        assert TOKEN not in result.output


class TestMainGroup:
    def test_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "run" in result.output
        assert "check-access" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "dependabot-triage, version 0.1.0" in result.output
