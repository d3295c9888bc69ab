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
"""CI readiness of a head commit."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

from dependabot_triage.triage.models import CheckRun, CIVerdict, RepositoryRef
from dependabot_triage.utils.errors import RemoteRequestError

if TYPE_CHECKING:
    from dependabot_triage.utils.github import RemoteApi

log = structlog.get_logger(__name__)

_GREEN_CHECK_CONCLUSIONS = {"success", "neutral", "skipped"}


class ReadinessCheck(Protocol):
    def is_ready(self, repository: RepositoryRef, head_sha: str) -> bool: ...


class CombinedStatusCheck:
    """
    Readiness from the commit's combined status.

    Only the aggregate state counts: ``success`` is ready, anything else (pending,
    failure, error) is not. A failed query is never treated as green.
    """

    def __init__(self, remote: RemoteApi):
        self.remote = remote

    def verdict(self, repository: RepositoryRef, head_sha: str) -> CIVerdict:
        try:
            state = self.remote.get_combined_status(repository, head_sha)
        except RemoteRequestError as e:
            log.error("Could not fetch combined status of %s@%s: %s", repository, head_sha[:7], e)
            return CIVerdict.INDETERMINATE
        log.debug("Combined status of %s@%s is %s", repository, head_sha[:7], state)
        return CIVerdict.from_combined_state(state)

    def is_ready(self, repository: RepositoryRef, head_sha: str) -> bool:
        return self.verdict(repository, head_sha) == CIVerdict.SUCCESS


def reduce_check_runs(check_runs: list[CheckRun]) -> CIVerdict:
    """All check runs completed with a green conclusion -> success. No check runs at all is not green."""
    if not check_runs:
        return CIVerdict.PENDING_OR_FAILED
    for run in check_runs:
        if run.status != "completed" or (run.conclusion or "").lower() not in _GREEN_CHECK_CONCLUSIONS:
            return CIVerdict.PENDING_OR_FAILED
    return CIVerdict.SUCCESS


class CheckRunsCheck:
    """Readiness from the checks API, for repositories whose CI does not report commit statuses."""

    def __init__(self, remote: RemoteApi):
        self.remote = remote

    def verdict(self, repository: RepositoryRef, head_sha: str) -> CIVerdict:
        try:
            check_runs = self.remote.list_check_runs(repository, head_sha)
        except RemoteRequestError as e:
            log.error("Could not list check runs of %s@%s: %s", repository, head_sha[:7], e)
            return CIVerdict.INDETERMINATE
        verdict = reduce_check_runs(check_runs)
        log.debug("%d check runs on %s@%s: %s", len(check_runs), repository, head_sha[:7], verdict.value)
        return verdict

    def is_ready(self, repository: RepositoryRef, head_sha: str) -> bool:
        return self.verdict(repository, head_sha) == CIVerdict.SUCCESS


READINESS_CHECKS: dict[str, type[CombinedStatusCheck] | type[CheckRunsCheck]] = {
    "statuses": CombinedStatusCheck,
    "checks": CheckRunsCheck,
}


def get_readiness_check(ci_source: str, remote: RemoteApi) -> ReadinessCheck:
    try:
        return READINESS_CHECKS[ci_source](remote)
    except KeyError:
        raise ValueError(f"Unknown CI source {ci_source!r}, expected one of {sorted(READINESS_CHECKS)}")
