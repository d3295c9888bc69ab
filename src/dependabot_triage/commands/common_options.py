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

import click

from dependabot_triage.utils.credentials import DEFAULT_REPOS_FILE, DEFAULT_TOKEN_FILE
from dependabot_triage.utils.github import DEFAULT_API_URL

option_github_token = click.option(
    "--github-token",
    envvar="GITHUB_TOKEN",
    show_envvar=True,
    help="GitHub token. Falls back to the token file, then to `gh auth token`.",
)
option_token_file = click.option(
    "--token-file",
    type=click.Path(dir_okay=False),
    default=DEFAULT_TOKEN_FILE,
    show_default=True,
    help="File holding the GitHub token, used when --github-token is not given.",
)
option_repos_file = click.option(
    "--repos-file",
    type=click.Path(dir_okay=False),
    default=DEFAULT_REPOS_FILE,
    show_default=True,
    help="File with one owner/name repository per line.",
)
option_repository = click.option(
    "-r",
    "--repository",
    "repositories",
    multiple=True,
    help="Repository as owner/name (can be repeated). Overrides --repos-file.",
)
option_api_url = click.option(
    "--api-url",
    envvar="GITHUB_API_URL",
    show_envvar=True,
    default=DEFAULT_API_URL,
    show_default=True,
    help="GitHub REST API base URL.",
)
option_dry_run = click.option(
    "--dry-run",
    is_flag=True,
    help="Read everything but never update branches or approve. Blocked PRs are compared with "
    "their base to report whether a live run would update them.",
)
option_verbose = click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Print debug logs.",
)
