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

import sys

import click
from rich.markup import escape
from rich.table import Table

from dependabot_triage.commands.common_options import (
    option_api_url,
    option_github_token,
    option_repos_file,
    option_repository,
    option_token_file,
    option_verbose,
)
from dependabot_triage.triage.access_gate import AccessGate
from dependabot_triage.triage.models import AccessDecision, OrganizationProbe
from dependabot_triage.utils.console import get_console
from dependabot_triage.utils.credentials import load_repositories, resolve_github_token
from dependabot_triage.utils.errors import AuthenticationError, RemoteRequestError, StartupConfigError
from dependabot_triage.utils.github import GitHubRemote
from dependabot_triage.utils.logging import configure_logging, mask_secret

_STEP_UP_HINTS = [
    "1. Go to: https://github.com/settings/tokens",
    "2. Find your personal access token",
    "3. Click 'Configure SSO' and authorize it for the organizations listed above",
    "4. Complete the SAML authentication process",
    "Alternatively create a fine-grained token: https://github.com/settings/personal-access-tokens/new",
]


def _access_text(decision: AccessDecision) -> str:
    if not decision.has_access:
        return f"[error]{decision.reason}[/]"
    if decision.probe == OrganizationProbe.NOT_FOUND:
        return "[warning]not an organization or not visible (user-owned repositories are fine)[/]"
    if decision.probe is None:
        return "[warning]probe failed, triage will proceed[/]"
    return "[success]access granted[/]"


@click.command(name="check-access", help="Check the token and its access to every configured organization.")
@option_github_token
@option_token_file
@option_repository
@option_repos_file
@option_api_url
@option_verbose
def check_access(
    github_token: str | None,
    token_file: str,
    repositories: tuple[str, ...],
    repos_file: str,
    api_url: str,
    verbose: bool,
):
    configure_logging(verbose)
    try:
        token = resolve_github_token(github_token, token_file)
        repository_refs = load_repositories(repositories, repos_file)
    except StartupConfigError as e:
        get_console().print(f"[error]{escape(str(e))}[/]")
        sys.exit(1)
    mask_secret(token)

    remote = GitHubRemote(token, api_url)
    try:
        login = remote.get_authenticated_login()
        scopes = remote.get_token_scopes()
    except AuthenticationError:
        get_console().print("[error]The token is invalid or expired. Check the token you provided.[/]")
        sys.exit(1)
    except RemoteRequestError as e:
        get_console().print(f"[error]Could not verify the token: {escape(str(e))}[/]")
        sys.exit(1)
    get_console().print(f"[success]Token is valid for user: {login}[/]")
    get_console().print(f"Token scopes: {scopes or 'unable to determine (fine-grained token?)'}")
    get_console().print()

    gate = AccessGate(remote)
    organizations = list(dict.fromkeys(repository.owner for repository in repository_refs))
    table = Table(title="Organization access")
    table.add_column("Organization", style="cyan")
    table.add_column("Access")
    blocked = 0
    for organization in organizations:
        decision = gate.check_access(organization)
        if not decision.has_access:
            blocked += 1
        table.add_row(organization, _access_text(decision))
    get_console().print(table)

    if blocked:
        get_console().print(f"\n[error]{blocked} organization(s) cannot be triaged with this token.[/]")
        get_console().print("[info]To authorize the token for SAML SSO organizations:[/]")
        for hint in _STEP_UP_HINTS:
            get_console().print(f"  {hint}")
        sys.exit(1)
    get_console().print("\n[success]The token has access to all configured organizations.[/]")
