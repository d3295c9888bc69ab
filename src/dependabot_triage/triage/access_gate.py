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
"""Per-organization access gate, evaluated once per run."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from dependabot_triage.triage.models import AccessDecision, OrganizationProbe
from dependabot_triage.utils.errors import RemoteRequestError

if TYPE_CHECKING:
    from dependabot_triage.utils.github import RemoteApi

log = structlog.get_logger(__name__)

STEP_UP_REQUIRED = "requires step-up authorization"
CREDENTIAL_INVALID = "credential invalid or expired"

_DENIED_REASONS = {
    OrganizationProbe.FORBIDDEN: STEP_UP_REQUIRED,
    OrganizationProbe.UNAUTHORIZED: CREDENTIAL_INVALID,
}


class AccessGate:
    """
    Decide whether the credential may operate on repositories of an organization.

    Only the two authorization failures deny access. Any other answer, including a
    not-found organization (user-owned repositories) or a failed probe, lets triage
    proceed. Decisions are cached for the lifetime of the gate, which is one run.
    """

    def __init__(self, remote: RemoteApi):
        self.remote = remote
        self._decisions: dict[str, AccessDecision] = {}

    def check_access(self, organization: str) -> AccessDecision:
        if not organization:
            raise ValueError("organization must be a non-empty string")
        if organization not in self._decisions:
            self._decisions[organization] = self._probe(organization)
        return self._decisions[organization]

    def _probe(self, organization: str) -> AccessDecision:
        try:
            probe = self.remote.get_organization(organization)
        except RemoteRequestError as e:
            log.warning("Access probe for %s failed, continuing: %s", organization, e)
            return AccessDecision(organization=organization, has_access=True)
        except Exception:
            log.exception("Unexpected error probing access to %s, continuing", organization)
            return AccessDecision(organization=organization, has_access=True)
        reason = _DENIED_REASONS.get(probe)
        if reason:
            log.warning("No access to organization %s: %s", organization, reason)
            return AccessDecision(organization=organization, has_access=False, reason=reason, probe=probe)
        log.debug("Access to organization %s: %s", organization, probe.value)
        return AccessDecision(organization=organization, has_access=True, probe=probe)

    @property
    def decisions(self) -> list[AccessDecision]:
        return list(self._decisions.values())
