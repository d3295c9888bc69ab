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
"""Error taxonomy shared by the loaders, the GitHub adapter and the triage engine."""

from __future__ import annotations


class TriageError(Exception):
    """Base class for all errors raised by dependabot-triage."""


class StartupConfigError(TriageError):
    """Token or repository list is missing or unusable. Fatal before any API call."""


class RemoteRequestError(TriageError):
    """A call to the code-hosting API failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.status}: {self.message}"


class AuthenticationError(RemoteRequestError):
    """The credential was rejected (invalid or expired)."""


class AuthorizationError(RemoteRequestError):
    """The credential is valid but needs step-up (SAML SSO) authorization for the organization."""


class RemoteConflictError(RemoteRequestError):
    """The branch update was rejected: either nothing to update or the branches conflict."""


class TransientQueryError(TriageError):
    """A read needed for a decision (status, reviews) failed; callers fail closed."""
