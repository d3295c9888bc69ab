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
"""Transient entities used by a single triage run. Nothing here is persisted."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

# mergeable_state values for which the head branch has to be brought up to date first
STALE_MERGEABLE_STATES = frozenset({"behind", "blocked"})


class RepositoryRef(BaseModel):
    """An ``owner/name`` pair identifying one repository."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str

    @field_validator("owner", "name")
    @classmethod
    def validate_segment(cls, v: str) -> str:
        v = v.strip()
        if not v or "/" in v:
            raise ValueError("repository segments must be non-empty and must not contain '/'")
        return v

    @classmethod
    def parse(cls, full_name: str) -> RepositoryRef:
        """Build a reference from ``owner/name``. Raises ``ValueError`` on anything else."""
        parts = full_name.strip().split("/")
        if len(parts) != 2:
            raise ValueError(f"Expected 'owner/name', got {full_name!r}")
        return cls(owner=parts[0], name=parts[1])

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return self.full_name


@dataclass
class PullRequestInfo:
    """Pull request data. ``mergeable_state`` is only populated by a single-PR fetch."""

    number: int
    title: str
    head_sha: str
    head_ref: str
    base_ref: str
    author_login: str
    mergeable_state: str | None = None

    @property
    def is_stale(self) -> bool:
        return (self.mergeable_state or "").lower() in STALE_MERGEABLE_STATES


@dataclass(frozen=True)
class Review:
    author_login: str
    state: str  # APPROVED, CHANGES_REQUESTED, COMMENTED, DISMISSED, PENDING


@dataclass(frozen=True)
class CheckRun:
    name: str
    status: str  # queued, in_progress, completed
    conclusion: str | None  # success, failure, neutral, skipped, ... (None until completed)


class OrganizationProbe(str, Enum):
    """Result of reading organization metadata with the current credential."""

    SUCCESS = "success"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class AccessDecision:
    organization: str
    has_access: bool
    reason: str | None = None
    probe: OrganizationProbe | None = None


class CIVerdict(str, Enum):
    """Readiness of a head commit, reduced from the combined status."""

    SUCCESS = "success"
    PENDING_OR_FAILED = "pending-or-failed"
    INDETERMINATE = "indeterminate"

    @classmethod
    def from_combined_state(cls, state: str | None) -> CIVerdict:
        if not state:
            return cls.INDETERMINATE
        if state.lower() == "success":
            return cls.SUCCESS
        return cls.PENDING_OR_FAILED


class SyncStatus(str, Enum):
    """What the branch freshness check did for one pull request."""

    NOT_NEEDED = "not_needed"
    TRIGGERED = "triggered"
    ALREADY_CURRENT = "already_current"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class SyncResult:
    status: SyncStatus
    message: str = ""

    @property
    def triggered(self) -> bool:
        return self.status == SyncStatus.TRIGGERED


@dataclass(frozen=True)
class ApprovalResult:
    created: bool


class TriageOutcome(str, Enum):
    """Statistics bucket an item ends up in."""

    SYNCED = "synced"
    APPROVED = "approved"
    SKIPPED_NOT_GREEN = "skipped-not-green"
    SKIPPED_OTHER = "skipped-other"
    ACCESS_BLOCKED = "access-blocked"


class TriageState(str, Enum):
    """Terminal state of the per-pull-request decision, first match wins."""

    NOT_DEPENDENCY_BOT = "not_dependency_bot"
    STALE = "stale"
    SYNC_REJECTED = "sync_rejected"
    NOT_READY = "not_ready"
    ALREADY_APPROVED = "already_approved"
    READY_TO_APPROVE = "ready_to_approve"

    @property
    def outcome(self) -> TriageOutcome | None:
        return _STATE_OUTCOMES[self]


_STATE_OUTCOMES: dict[TriageState, TriageOutcome | None] = {
    TriageState.NOT_DEPENDENCY_BOT: None,
    TriageState.STALE: TriageOutcome.SYNCED,
    TriageState.SYNC_REJECTED: TriageOutcome.SKIPPED_OTHER,
    TriageState.NOT_READY: TriageOutcome.SKIPPED_NOT_GREEN,
    TriageState.ALREADY_APPROVED: TriageOutcome.APPROVED,
    TriageState.READY_TO_APPROVE: TriageOutcome.APPROVED,
}


@dataclass(frozen=True)
class TriageEvent:
    """One outcome emitted by the engine. ``pull_number`` is None for repository-level events."""

    repository: RepositoryRef
    outcome: TriageOutcome
    pull_number: int | None = None
    state: TriageState | None = None
    detail: str = ""
