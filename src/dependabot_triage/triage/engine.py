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
"""Triage decision engine: one pass over the configured repositories."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import TYPE_CHECKING

import structlog

from dependabot_triage.triage.models import (
    ApprovalResult,
    PullRequestInfo,
    RepositoryRef,
    SyncResult,
    SyncStatus,
    TriageEvent,
    TriageOutcome,
    TriageState,
)

if TYPE_CHECKING:
    from dependabot_triage.triage.access_gate import AccessGate
    from dependabot_triage.triage.approval import ApprovalAction
    from dependabot_triage.triage.freshness import BranchFreshnessCheck
    from dependabot_triage.triage.readiness import ReadinessCheck
    from dependabot_triage.utils.github import RemoteApi

log = structlog.get_logger(__name__)

DEFAULT_BOT_AUTHORS = ("dependabot",)


def is_dependency_bot(
    login: str, bot_authors: Sequence[str] = DEFAULT_BOT_AUTHORS, exact: bool = False
) -> bool:
    """
    Whether ``login`` belongs to a dependency-update bot.

    By default any login containing one of ``bot_authors`` matches, case-insensitively.
    With ``exact`` the login has to equal one of them, which keeps unrelated accounts
    such as ``not-dependabot-fan`` out.
    """
    lower = login.lower()
    if exact:
        return lower in {author.lower() for author in bot_authors}
    return any(author.lower() in lower for author in bot_authors)


def decide(
    *,
    author_is_bot: bool,
    sync: Callable[[], SyncResult],
    ci_ready: Callable[[], bool],
    approve: Callable[[], ApprovalResult],
) -> TriageState:
    """
    Evaluate the triage states in order and return the first that matches.

    Each callable is invoked at most once and only when every earlier state did not
    match, so no CI or review call follows a triggered branch update. ``approve``
    runs the duplicate-approval guard and tells an existing approval apart from a
    new one.
    """
    if not author_is_bot:
        return TriageState.NOT_DEPENDENCY_BOT
    sync_result = sync()
    if sync_result.triggered:
        return TriageState.STALE
    if sync_result.status not in (SyncStatus.NOT_NEEDED, SyncStatus.ALREADY_CURRENT):
        return TriageState.SYNC_REJECTED
    if not ci_ready():
        return TriageState.NOT_READY
    if not approve().created:
        return TriageState.ALREADY_APPROVED
    return TriageState.READY_TO_APPROVE


class TriageEngine:
    """Runs the access gate per repository and the decision per dependency-bot pull request."""

    def __init__(
        self,
        remote: RemoteApi,
        access_gate: AccessGate,
        freshness: BranchFreshnessCheck,
        readiness: ReadinessCheck,
        approval: ApprovalAction,
        bot_authors: Sequence[str] = DEFAULT_BOT_AUTHORS,
        exact_author: bool = False,
    ):
        self.remote = remote
        self.access_gate = access_gate
        self.freshness = freshness
        self.readiness = readiness
        self.approval = approval
        self.bot_authors = tuple(bot_authors)
        self.exact_author = exact_author

    def run(self, repositories: Iterable[RepositoryRef]) -> Iterator[TriageEvent]:
        for repository in repositories:
            yield from self.triage_repository(repository)

    def triage_repository(self, repository: RepositoryRef) -> Iterator[TriageEvent]:
        log.info("Processing repository %s", repository)
        access = self.access_gate.check_access(repository.owner)
        if not access.has_access:
            yield TriageEvent(repository, TriageOutcome.ACCESS_BLOCKED, detail=access.reason or "")
            return
        try:
            pulls = self.remote.list_open_pull_requests(repository)
        except Exception as e:
            log.exception("Error listing pull requests of %s", repository)
            yield TriageEvent(repository, TriageOutcome.SKIPPED_OTHER, detail=str(e))
            return

        found = False
        for pull in pulls:
            event = self.triage_pull_request(repository, pull)
            if event is not None:
                found = True
                yield event
        if not found:
            log.info("No open dependency-bot PRs in %s", repository)

    def triage_pull_request(self, repository: RepositoryRef, pull: PullRequestInfo) -> TriageEvent | None:
        """Decide and act on one pull request. Returns None for pull requests of other authors."""
        # list results carry no mergeable_state, so the decision works on a fresh copy
        fresh: list[PullRequestInfo] = []

        def current() -> PullRequestInfo:
            if not fresh:
                fresh.append(self.remote.get_pull_request(repository, pull.number))
            return fresh[0]

        try:
            state = decide(
                author_is_bot=is_dependency_bot(pull.author_login, self.bot_authors, self.exact_author),
                sync=lambda: self.freshness.sync_if_stale(repository, current()),
                ci_ready=lambda: self.readiness.is_ready(repository, current().head_sha),
                approve=lambda: self.approval.approve(repository, pull.number),
            )
            if state == TriageState.NOT_DEPENDENCY_BOT:
                return None
            log.info("PR #%s of %s (%s): %s", pull.number, repository, pull.title, state.value)
        except Exception as e:
            log.exception("Error triaging PR #%s of %s", pull.number, repository)
            return TriageEvent(repository, TriageOutcome.SKIPPED_OTHER, pull.number, detail=str(e))
        return TriageEvent(repository, state.outcome, pull.number, state)
