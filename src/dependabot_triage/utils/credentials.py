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
"""Loading of the GitHub token, the repository list and the validated run settings."""

from __future__ import annotations

import subprocess
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from dependabot_triage.triage.engine import DEFAULT_BOT_AUTHORS
from dependabot_triage.triage.models import RepositoryRef
from dependabot_triage.utils.errors import StartupConfigError
from dependabot_triage.utils.github import DEFAULT_API_URL

log = structlog.get_logger(__name__)

DEFAULT_TOKEN_FILE = "token.txt"
DEFAULT_REPOS_FILE = "repos.txt"


def _token_from_gh_cli() -> str | None:
    try:
        result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, check=False)
    except FileNotFoundError:
        return None
    if result.returncode == 0:
        return result.stdout.strip() or None
    return None


def resolve_github_token(github_token: str | None, token_file: str | Path | None = DEFAULT_TOKEN_FILE) -> str:
    """Resolve the GitHub token from option/environment, token file, or gh CLI, in that order."""
    if github_token and github_token.strip():
        return github_token.strip()
    if token_file:
        path = Path(token_file)
        if path.is_file():
            try:
                token = path.read_text(encoding="utf-8").strip()
            except OSError as e:
                raise StartupConfigError(f"Error reading token from {str(path)!r}: {e}") from e
            if not token:
                raise StartupConfigError(f"Token file {str(path)!r} is empty")
            return token
    token = _token_from_gh_cli()
    if token:
        return token
    raise StartupConfigError(
        "GitHub token not found. Provide --github-token, set GITHUB_TOKEN, "
        f"write it to {str(token_file or DEFAULT_TOKEN_FILE)!r}, or authenticate with `gh auth login`."
    )


def parse_repository_list(lines: Iterable[str]) -> list[RepositoryRef]:
    """
    Parse ``owner/name`` lines.

    Blank lines and ``#`` comments are ignored. Malformed lines are logged and
    skipped. Duplicates are kept, the run simply processes them again.
    """
    repositories: list[RepositoryRef] = []
    for line in lines:
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        try:
            repositories.append(RepositoryRef.parse(entry))
        except ValueError:
            log.warning("Skipping invalid repository entry %r, expected 'owner/name'", entry)
    return repositories


def load_repositories(
    repositories: Sequence[str] = (), repos_file: str | Path | None = DEFAULT_REPOS_FILE
) -> list[RepositoryRef]:
    """Repositories given explicitly win over the repository file."""
    if repositories:
        result = parse_repository_list(repositories)
        source = "the command line"
    else:
        if not repos_file:
            raise StartupConfigError("No repositories given and no repository file configured")
        path = Path(repos_file)
        try:
            result = parse_repository_list(path.read_text(encoding="utf-8").splitlines())
        except OSError as e:
            raise StartupConfigError(f"Error reading repositories from {str(path)!r}: {e}") from e
        source = repr(str(path))
    if not result:
        raise StartupConfigError(f"No valid repositories found in {source}")
    return result


class TriageSettings(BaseModel):
    """Validated settings of one run."""

    model_config = ConfigDict(frozen=True)

    github_token: SecretStr
    repositories: list[RepositoryRef] = Field(min_length=1)
    bot_authors: tuple[str, ...] = DEFAULT_BOT_AUTHORS
    exact_author: bool = False
    ci_source: Literal["statuses", "checks"] = "statuses"
    api_url: str = DEFAULT_API_URL
    dry_run: bool = False

    @field_validator("github_token")
    @classmethod
    def validate_token(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("token must not be empty")
        return v

    @field_validator("bot_authors")
    @classmethod
    def validate_bot_authors(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        authors = tuple(author.strip() for author in v if author.strip())
        if not authors:
            raise ValueError("at least one bot author is required")
        return authors

    @property
    def organizations(self) -> list[str]:
        """Distinct repository owners, in first-seen order."""
        return list(dict.fromkeys(repository.owner for repository in self.repositories))


def load_settings(
    *,
    github_token: str | None,
    token_file: str | Path | None,
    repositories: Sequence[str],
    repos_file: str | Path | None,
    **options,
) -> TriageSettings:
    """Resolve token and repositories and validate everything. Raises ``StartupConfigError``."""
    token = resolve_github_token(github_token, token_file)
    repository_refs = load_repositories(repositories, repos_file)
    try:
        return TriageSettings(github_token=SecretStr(token), repositories=repository_refs, **options)
    except ValidationError as e:
        raise StartupConfigError(f"Invalid settings: {e}") from e
