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
"""Adapter between the triage engine and the GitHub REST API."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

import requests
import structlog
from github import Auth, Github, GithubException
from github.PullRequest import PullRequest

from dependabot_triage.triage.models import (
    CheckRun,
    OrganizationProbe,
    PullRequestInfo,
    RepositoryRef,
    Review,
)
from dependabot_triage.utils.errors import (
    AuthenticationError,
    AuthorizationError,
    RemoteConflictError,
    RemoteRequestError,
)

log = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://api.github.com"
REST_TIMEOUT = 30

_PROBE_BY_STATUS = {
    200: OrganizationProbe.SUCCESS,
    401: OrganizationProbe.UNAUTHORIZED,
    403: OrganizationProbe.FORBIDDEN,
    404: OrganizationProbe.NOT_FOUND,
}


class RemoteApi(Protocol):
    """Operations of the code-hosting API the triage engine relies on."""

    def get_authenticated_login(self) -> str: ...

    def get_organization(self, org: str) -> OrganizationProbe: ...

    def list_open_pull_requests(self, repository: RepositoryRef) -> list[PullRequestInfo]: ...

    def get_pull_request(self, repository: RepositoryRef, number: int) -> PullRequestInfo: ...

    def update_branch(self, repository: RepositoryRef, number: int, expected_head_sha: str) -> None: ...

    def count_commits_behind(self, repository: RepositoryRef, base_ref: str, head_sha: str) -> int: ...

    def get_combined_status(self, repository: RepositoryRef, ref: str) -> str: ...

    def list_check_runs(self, repository: RepositoryRef, ref: str) -> list[CheckRun]: ...

    def list_reviews(self, repository: RepositoryRef, number: int) -> list[Review]: ...

    def create_review(self, repository: RepositoryRef, number: int, event: str, body: str) -> None: ...


def error_for_status(status: int | None, message: str) -> RemoteRequestError:
    """Pick the most specific error class for an HTTP status."""
    if status == 401:
        return AuthenticationError(message, status)
    if status == 403:
        return AuthorizationError(message, status)
    if status == 422:
        return RemoteConflictError(message, status)
    return RemoteRequestError(message, status)


def _github_message(exc: GithubException) -> str:
    data = exc.data
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(exc)


@contextmanager
def _remote_call(description: str) -> Iterator[None]:
    """Translate PyGithub and transport errors into ``RemoteRequestError``."""
    try:
        yield
    except GithubException as e:
        raise error_for_status(e.status, f"{description}: {_github_message(e)}") from e
    except requests.RequestException as e:
        raise RemoteRequestError(f"{description}: {e}") from e


class GitHubRemote:
    """
    ``RemoteApi`` backed by PyGithub, with raw REST calls where PyGithub hides the status code.

    :param token: bearer token used for every call
    :param api_url: REST base URL, override for GitHub Enterprise
    """

    def __init__(self, token: str, api_url: str = DEFAULT_API_URL):
        self.api_url = api_url.rstrip("/")
        self._token = token
        self._github = Github(auth=Auth.Token(token), base_url=self.api_url)
        self._pulls: dict[tuple[str, int], PullRequest] = {}

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}", "Accept": "application/vnd.github+json"}

    def get_authenticated_login(self) -> str:
        with _remote_call("get authenticated user"):
            return self._github.get_user().login

    def get_token_scopes(self) -> str | None:
        """Return the ``X-OAuth-Scopes`` header of ``GET /user`` (None for fine-grained tokens)."""
        try:
            response = requests.get(f"{self.api_url}/user", headers=self._headers, timeout=REST_TIMEOUT)
        except requests.RequestException as e:
            raise RemoteRequestError(f"get token scopes: {e}") from e
        if response.status_code != 200:
            raise error_for_status(response.status_code, f"get token scopes: {response.text}")
        return response.headers.get("X-OAuth-Scopes")

    def get_organization(self, org: str) -> OrganizationProbe:
        try:
            self._github.get_organization(org)
        except GithubException as e:
            if e.status in _PROBE_BY_STATUS:
                return _PROBE_BY_STATUS[e.status]
            raise error_for_status(e.status, f"get organization {org}: {_github_message(e)}") from e
        except requests.RequestException as e:
            raise RemoteRequestError(f"get organization {org}: {e}") from e
        return OrganizationProbe.SUCCESS

    def list_open_pull_requests(self, repository: RepositoryRef) -> list[PullRequestInfo]:
        with _remote_call(f"list pull requests of {repository}"):
            repo = self._github.get_repo(repository.full_name, lazy=True)
            return [_to_info(pull, with_mergeable_state=False) for pull in repo.get_pulls(state="open")]

    def get_pull_request(self, repository: RepositoryRef, number: int) -> PullRequestInfo:
        with _remote_call(f"get pull request {repository}#{number}"):
            pull = self._github.get_repo(repository.full_name, lazy=True).get_pull(number)
        self._pulls[(repository.full_name, number)] = pull
        return _to_info(pull, with_mergeable_state=True)

    def update_branch(self, repository: RepositoryRef, number: int, expected_head_sha: str) -> None:
        # PyGithub's PullRequest.update_branch() reports a 422 as a plain False, so the
        # "nothing to update" and "conflict" answers would be indistinguishable.
        url = f"{self.api_url}/repos/{repository.full_name}/pulls/{number}/update-branch"
        try:
            response = requests.put(
                url,
                json={"expected_head_sha": expected_head_sha},
                headers=self._headers,
                timeout=REST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise RemoteRequestError(f"update branch of {repository}#{number}: {e}") from e
        if response.status_code == 202:
            log.debug("Branch update of %s#%s accepted", repository, number)
            return
        try:
            message = response.json().get("message", response.text)
        except ValueError:
            message = response.text
        raise error_for_status(response.status_code, message)

    def count_commits_behind(self, repository: RepositoryRef, base_ref: str, head_sha: str) -> int:
        """Number of commits on ``base_ref`` that ``head_sha`` does not contain."""
        with _remote_call(f"compare {repository} {base_ref}...{head_sha}"):
            repo = self._github.get_repo(repository.full_name, lazy=True)
            return repo.compare(base_ref, head_sha).behind_by

    def get_combined_status(self, repository: RepositoryRef, ref: str) -> str:
        with _remote_call(f"get combined status of {repository}@{ref}"):
            commit = self._github.get_repo(repository.full_name, lazy=True).get_commit(ref)
            return commit.get_combined_status().state

    def list_check_runs(self, repository: RepositoryRef, ref: str) -> list[CheckRun]:
        with _remote_call(f"list check runs of {repository}@{ref}"):
            commit = self._github.get_repo(repository.full_name, lazy=True).get_commit(ref)
            return [
                CheckRun(name=run.name, status=run.status, conclusion=run.conclusion)
                for run in commit.get_check_runs()
            ]

    def list_reviews(self, repository: RepositoryRef, number: int) -> list[Review]:
        with _remote_call(f"list reviews of {repository}#{number}"):
            return [
                Review(author_login=review.user.login if review.user else "", state=review.state)
                for review in self._pull(repository, number).get_reviews()
            ]

    def create_review(self, repository: RepositoryRef, number: int, event: str, body: str) -> None:
        with _remote_call(f"create review on {repository}#{number}"):
            self._pull(repository, number).create_review(body=body, event=event)

    def _pull(self, repository: RepositoryRef, number: int) -> PullRequest:
        key = (repository.full_name, number)
        if key not in self._pulls:
            self._pulls[key] = self._github.get_repo(repository.full_name, lazy=True).get_pull(number)
        return self._pulls[key]


def _to_info(pull: PullRequest, with_mergeable_state: bool) -> PullRequestInfo:
    return PullRequestInfo(
        number=pull.number,
        title=pull.title,
        head_sha=pull.head.sha,
        head_ref=pull.head.ref,
        base_ref=pull.base.ref,
        author_login=pull.user.login if pull.user else "",
        mergeable_state=(pull.mergeable_state or "unknown") if with_mergeable_state else None,
    )
