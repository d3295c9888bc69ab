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
from collections.abc import Iterable, Iterator

import click
from rich.markup import escape
from rich.table import Table

from dependabot_triage.commands.common_options import (
    option_api_url,
    option_dry_run,
    option_github_token,
    option_repos_file,
    option_repository,
    option_token_file,
    option_verbose,
)
from dependabot_triage.triage.access_gate import AccessGate
from dependabot_triage.triage.approval import ApprovalAction
from dependabot_triage.triage.engine import DEFAULT_BOT_AUTHORS, TriageEngine
from dependabot_triage.triage.freshness import BranchFreshnessCheck
from dependabot_triage.triage.models import TriageEvent, TriageOutcome, TriageState
from dependabot_triage.triage.readiness import READINESS_CHECKS, get_readiness_check
from dependabot_triage.triage.statistics import RunStatistics, tally
from dependabot_triage.utils.console import get_console
from dependabot_triage.utils.credentials import TriageSettings, load_settings
from dependabot_triage.utils.errors import StartupConfigError
from dependabot_triage.utils.github import GitHubRemote, RemoteApi
from dependabot_triage.utils.logging import REDACTED, configure_logging, mask_secret

_STATE_MESSAGES = {
    TriageState.STALE: "[info]branch behind base, update requested[/]",
    TriageState.SYNC_REJECTED: "[warning]branch cannot be updated automatically, skipping[/]",
    TriageState.NOT_READY: "[warning]CI is not green, skipping approval[/]",
    TriageState.ALREADY_APPROVED: "[success]already approved[/]",
    TriageState.READY_TO_APPROVE: "[success]approved[/]",
}


def build_engine(settings: TriageSettings, remote: RemoteApi) -> TriageEngine:
    return TriageEngine(
        remote=remote,
        access_gate=AccessGate(remote),
        freshness=BranchFreshnessCheck(remote, dry_run=settings.dry_run),
        readiness=get_readiness_check(settings.ci_source, remote),
        approval=ApprovalAction(remote, dry_run=settings.dry_run),
        bot_authors=settings.bot_authors,
        exact_author=settings.exact_author,
    )


def _print_event(event: TriageEvent) -> None:
    prefix = f"  PR #{event.pull_number} of {event.repository}:"
    if event.outcome == TriageOutcome.ACCESS_BLOCKED:
        get_console().print(f"[error]{event.repository}: no access ({event.detail}), skipping repository[/]")
    elif event.pull_number is None:
        get_console().print(f"[error]{event.repository}: skipped ({escape(event.detail)})[/]")
    elif event.state is None:
        get_console().print(f"{prefix} [error]error: {escape(event.detail)}[/]")
    else:
        get_console().print(f"{prefix} {_STATE_MESSAGES[event.state]}")


def _report(events: Iterable[TriageEvent]) -> Iterator[TriageEvent]:
    for event in events:
        _print_event(event)
        yield event


def _print_summary(stats: RunStatistics, dry_run: bool) -> None:
    get_console().print()
    summary_table = Table(title="Summary (dry run)" if dry_run else "Summary")
    summary_table.add_column("Metric", style="bold")
    summary_table.add_column("PRs", justify="right")
    for label, count in stats.rows():
        summary_table.add_row(label, str(count))
    get_console().print(summary_table)


@click.command(name="run", help="Sync, check and approve open dependency-bot pull requests.")
@option_github_token
@option_token_file
@option_repository
@option_repos_file
@click.option(
    "--bot-author",
    "bot_authors",
    multiple=True,
    default=DEFAULT_BOT_AUTHORS,
    show_default=True,
    help="Author marker of dependency-bot PRs (can be repeated).",
)
@click.option(
    "--exact-author",
    is_flag=True,
    help="Match --bot-author exactly (case-insensitive) instead of as a substring of the login.",
)
@click.option(
    "--ci-source",
    type=click.Choice(sorted(READINESS_CHECKS)),
    default="statuses",
    show_default=True,
    help="Where CI results come from: combined commit statuses or check runs.",
)
@option_api_url
@option_dry_run
@option_verbose
def run(
    github_token: str | None,
    token_file: str,
    repositories: tuple[str, ...],
    repos_file: str,
    bot_authors: tuple[str, ...],
    exact_author: bool,
    ci_source: str,
    api_url: str,
    dry_run: bool,
    verbose: bool,
):
    configure_logging(verbose)
    try:
        settings = load_settings(
            github_token=github_token,
            token_file=token_file,
            repositories=repositories,
            repos_file=repos_file,
            bot_authors=bot_authors,
            exact_author=exact_author,
            ci_source=ci_source,
            api_url=api_url,
            dry_run=dry_run,
        )
    except StartupConfigError as e:
        get_console().print(f"[error]{escape(str(e))}[/]")
        sys.exit(1)
    token = settings.github_token.get_secret_value()
    mask_secret(token)

    count = len(settings.repositories)
    get_console().print(f"[info]Triaging dependency-bot PRs in {count} repositories...[/]")
    if dry_run:
        get_console().print("[warning]Dry run: no branch will be updated and nothing approved.[/]")
    try:
        engine = build_engine(settings, GitHubRemote(token, settings.api_url))
        stats = tally(_report(engine.run(settings.repositories)))
    except Exception as e:
        get_console().print(f"[error]Fatal error: {escape(str(e).replace(token, REDACTED))}[/]")
        sys.exit(1)
    _print_summary(stats, dry_run)
