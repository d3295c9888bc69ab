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
"""Duplicate-approval guard and the approval action."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from dependabot_triage.triage.models import ApprovalResult, RepositoryRef
from dependabot_triage.utils.errors import RemoteRequestError, TransientQueryError

if TYPE_CHECKING:
    from dependabot_triage.utils.github import RemoteApi

log = structlog.get_logger(__name__)

APPROVE_EVENT = "APPROVE"
APPROVED_STATE = "APPROVED"


class ApprovalAction:
    """
    Record a silent approving review, once per pull request and acting identity.

    The check-then-create sequence is not atomic, a concurrent run may approve in
    between. GitHub keeps both approvals and nothing breaks, so the guard only saves
    calls and log noise.
    """

    def __init__(self, remote: RemoteApi, dry_run: bool = False):
        self.remote = remote
        self.dry_run = dry_run
        self._login: str | None = None
        self._login_error: str | None = None

    @property
    def acting_login(self) -> str:
        """
        Login of the token owner, resolved on first use.

        A failed lookup is remembered for the lifetime of the action, later pull
        requests fail fast with ``TransientQueryError`` instead of asking again.
        """
        if self._login_error is not None:
            raise TransientQueryError(self._login_error)
        if self._login is None:
            try:
                self._login = self.remote.get_authenticated_login()
            except RemoteRequestError as e:
                self._login_error = f"Could not resolve the acting identity: {e}"
                raise TransientQueryError(self._login_error) from e
            log.debug("Acting as %s", self._login)
        return self._login

    def already_approved(self, repository: RepositoryRef, number: int) -> bool:
        login = self.acting_login
        try:
            reviews = self.remote.list_reviews(repository, number)
        except RemoteRequestError as e:
            raise TransientQueryError(f"Could not list reviews of {repository}#{number}: {e}") from e
        return any(
            review.author_login.lower() == login.lower() and review.state == APPROVED_STATE
            for review in reviews
        )

    def create(self, repository: RepositoryRef, number: int) -> None:
        if self.dry_run:
            log.info("Dry run: not approving PR #%s of %s", number, repository)
            return
        self.remote.create_review(repository, number, event=APPROVE_EVENT, body="")
        log.info("Approved PR #%s of %s as %s", number, repository, self.acting_login)

    def approve(self, repository: RepositoryRef, number: int) -> ApprovalResult:
        if self.already_approved(repository, number):
            log.info("PR #%s of %s already approved by %s", number, repository, self.acting_login)
            return ApprovalResult(created=False)
        self.create(repository, number)
        return ApprovalResult(created=True)
