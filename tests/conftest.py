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

import pytest
import structlog

from dependabot_triage.triage.access_gate import AccessGate
from dependabot_triage.triage.approval import ApprovalAction
from dependabot_triage.triage.engine import TriageEngine
from dependabot_triage.triage.freshness import BranchFreshnessCheck
from dependabot_triage.triage.models import (
    CheckRun,
    OrganizationProbe,
    PullRequestInfo,
    RepositoryRef,
    Review,
)
from dependabot_triage.triage.readiness import CombinedStatusCheck
from dependabot_triage.utils.console import get_console

ACTING_LOGIN = "release-manager"
BOT_LOGIN = "dependabot[bot]"


def make_pull(
    number: int = 1,
    author: str = BOT_LOGIN,
    head_sha: str = "0123456789abcdef",
    mergeable_state: str | None = None,
    title: str | None = None,
) -> PullRequestInfo:
    return PullRequestInfo(
        number=number,
        title=title or f"Bump library from 1.0.{number} to 1.0.{number + 1}",
        head_sha=head_sha,
        head_ref=f"dependabot/pip/library-1.0.{number + 1}",
        base_ref="main",
        author_login=author,
        mergeable_state=mergeable_state,
    )


class FakeRemote:
    """In-memory RemoteApi that records every call as ``(operation, *args)``."""

    def __init__(self):
        self.login = ACTING_LOGIN
        self.calls: list[tuple] = []
        self.org_probes: dict[str, OrganizationProbe] = {}
        self.open_pulls: dict[str, list[PullRequestInfo]] = {}
        self.mergeable_states: dict[tuple[str, int], str] = {}
        self.commits_behind: dict[str, int] = {}
        self.statuses: dict[str, str] = {}
        self.check_runs: dict[str, list[CheckRun]] = {}
        self.reviews: dict[tuple[str, int], list[Review]] = {}
        self.errors: dict[str, Exception] = {}

    def add_pull(self, repository: RepositoryRef, pull: PullRequestInfo, mergeable_state: str = "clean"):
        self.open_pulls.setdefault(repository.full_name, []).append(pull)
        self.mergeable_states[(repository.full_name, pull.number)] = mergeable_state

    def _record(self, operation: str, *args):
        self.calls.append((operation, *args))
        if operation in self.errors:
            raise self.errors[operation]

    def calls_to(self, operation: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == operation]

    def get_authenticated_login(self) -> str:
        self._record("get_authenticated_login")
        return self.login

    def get_organization(self, org: str) -> OrganizationProbe:
        self._record("get_organization", org)
        return self.org_probes.get(org, OrganizationProbe.SUCCESS)

    def list_open_pull_requests(self, repository: RepositoryRef) -> list[PullRequestInfo]:
        self._record("list_open_pull_requests", repository.full_name)
        return list(self.open_pulls.get(repository.full_name, []))

    def get_pull_request(self, repository: RepositoryRef, number: int) -> PullRequestInfo:
        self._record("get_pull_request", repository.full_name, number)
        listed = next(p for p in self.open_pulls[repository.full_name] if p.number == number)
        return PullRequestInfo(
            number=listed.number,
            title=listed.title,
            head_sha=listed.head_sha,
            head_ref=listed.head_ref,
            base_ref=listed.base_ref,
            author_login=listed.author_login,
            mergeable_state=self.mergeable_states.get((repository.full_name, number), "clean"),
        )

    def update_branch(self, repository: RepositoryRef, number: int, expected_head_sha: str) -> None:
        self._record("update_branch", repository.full_name, number, expected_head_sha)

    def count_commits_behind(self, repository: RepositoryRef, base_ref: str, head_sha: str) -> int:
        self._record("count_commits_behind", repository.full_name, base_ref, head_sha)
        return self.commits_behind.get(head_sha, 1)

    def get_combined_status(self, repository: RepositoryRef, ref: str) -> str:
        self._record("get_combined_status", repository.full_name, ref)
        return self.statuses.get(ref, "pending")

    def list_check_runs(self, repository: RepositoryRef, ref: str) -> list[CheckRun]:
        self._record("list_check_runs", repository.full_name, ref)
        return list(self.check_runs.get(ref, []))

    def list_reviews(self, repository: RepositoryRef, number: int) -> list[Review]:
        self._record("list_reviews", repository.full_name, number)
        return list(self.reviews.get((repository.full_name, number), []))

    def create_review(self, repository: RepositoryRef, number: int, event: str, body: str) -> None:
        self._record("create_review", repository.full_name, number, event, body)
        if event == "APPROVE":
            self.reviews.setdefault((repository.full_name, number), []).append(Review(self.login, "APPROVED"))


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def repository() -> RepositoryRef:
    return RepositoryRef(owner="acme", name="widgets")


@pytest.fixture
def engine(remote) -> TriageEngine:
    return TriageEngine(
        remote=remote,
        access_gate=AccessGate(remote),
        freshness=BranchFreshnessCheck(remote),
        readiness=CombinedStatusCheck(remote),
        approval=ApprovalAction(remote),
    )


@pytest.fixture(name="make_pull")
def make_pull_fixture():
    return make_pull


@pytest.fixture(autouse=True)
def reset_output(monkeypatch):
    # commands bind structlog and the rich console to the streams of the current CliRunner
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    monkeypatch.delenv("TTY_COMPATIBLE", raising=False)
    get_console.cache_clear()
    yield
    structlog.reset_defaults()
    get_console.cache_clear()
