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
"""Branch freshness check: bring a stale head branch up to date with its base."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from dependabot_triage.triage.models import PullRequestInfo, RepositoryRef, SyncResult, SyncStatus
from dependabot_triage.utils.errors import RemoteConflictError, RemoteRequestError

if TYPE_CHECKING:
    from dependabot_triage.utils.github import RemoteApi

log = structlog.get_logger(__name__)

# Fragments of the 422 message GitHub returns when the head already contains the base
_ALREADY_CURRENT_MARKERS = ("no new commits", "up to date", "up-to-date", "nothing to update")


def is_already_current(message: str) -> bool:
    """Tell a "nothing to update" rejection apart from a merge conflict."""
    lower = message.lower()
    return any(marker in lower for marker in _ALREADY_CURRENT_MARKERS)


class BranchFreshnessCheck:
    """
    Request a branch update when ``mergeable_state`` says the head is stale.

    The update is pinned to the head SHA that was read, so GitHub refuses it if
    someone pushed in between.
    """

    def __init__(self, remote: RemoteApi, dry_run: bool = False):
        self.remote = remote
        self.dry_run = dry_run

    def sync_if_stale(self, repository: RepositoryRef, pull: PullRequestInfo) -> SyncResult:
        if pull.mergeable_state is None:
            raise ValueError(f"PR #{pull.number} has no mergeable_state, fetch it individually first")
        if not pull.is_stale:
            return SyncResult(SyncStatus.NOT_NEEDED)

        log.info(
            "PR #%s of %s is %s, requesting branch update", pull.number, repository, pull.mergeable_state
        )
        if self.dry_run:
            return self._dry_run_result(repository, pull)
        try:
            self.remote.update_branch(repository, pull.number, expected_head_sha=pull.head_sha)
        except RemoteConflictError as e:
            if is_already_current(e.message):
                log.info("Branch update of PR #%s skipped: %s", pull.number, e.message)
                return SyncResult(SyncStatus.ALREADY_CURRENT, e.message)
            log.info("Branch of PR #%s cannot be updated automatically: %s", pull.number, e.message)
            return SyncResult(SyncStatus.CONFLICT, e.message)
        except RemoteRequestError as e:
            log.error("Could not update branch of PR #%s: %s", pull.number, e)
            return SyncResult(SyncStatus.FAILED, str(e))
        return SyncResult(SyncStatus.TRIGGERED)

    def _dry_run_result(self, repository: RepositoryRef, pull: PullRequestInfo) -> SyncResult:
        # "blocked" heads that already contain the base only wait for a review
        if (pull.mergeable_state or "").lower() == "blocked":
            try:
                behind_by = self.remote.count_commits_behind(repository, pull.base_ref, pull.head_sha)
            except RemoteRequestError as e:
                log.warning("Dry run: could not compare PR #%s with %s: %s", pull.number, pull.base_ref, e)
            else:
                if behind_by == 0:
                    log.info("Dry run: PR #%s already contains %s", pull.number, pull.base_ref)
                    return SyncResult(SyncStatus.ALREADY_CURRENT, "dry run: head contains the base")
        log.info("Dry run: not updating branch %s of %s", pull.head_ref, repository)
        return SyncResult(SyncStatus.TRIGGERED, "dry run")
