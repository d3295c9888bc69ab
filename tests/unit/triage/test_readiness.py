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

import pytest

from dependabot_triage.triage.models import CheckRun, CIVerdict
from dependabot_triage.triage.readiness import (
    CheckRunsCheck,
    CombinedStatusCheck,
    get_readiness_check,
    reduce_check_runs,
)
from dependabot_triage.utils.errors import RemoteRequestError

SHA = "0123456789abcdef"


class TestCombinedStatusCheck:
    @pytest.mark.parametrize(
        ("state", "ready"),
        [
            ("success", True),
            ("pending", False),
            ("failure", False),
            ("error", False),
            ("neutral", False),
        ],
    )
    def test_only_success_is_ready(self, remote, repository, state, ready):
        remote.statuses[SHA] = state
        assert CombinedStatusCheck(remote).is_ready(repository, SHA) is ready
        assert remote.calls == [("get_combined_status", "acme/widgets", SHA)]

    def test_query_failure_fails_closed(self, remote, repository):
        remote.statuses[SHA] = "success"
        remote.errors["get_combined_status"] = RemoteRequestError("timed out")
        check = CombinedStatusCheck(remote)
        assert check.verdict(repository, SHA) == CIVerdict.INDETERMINATE
        assert check.is_ready(repository, SHA) is False


def _run(status: str = "completed", conclusion: str | None = "success", name: str = "tests") -> CheckRun:
    return CheckRun(name=name, status=status, conclusion=conclusion)


class TestCheckRuns:
    @pytest.mark.parametrize(
        ("check_runs", "expected"),
        [
            ([_run()], CIVerdict.SUCCESS),
            ([_run(), _run(conclusion="skipped"), _run(conclusion="neutral")], CIVerdict.SUCCESS),
            ([_run(), _run(conclusion="failure")], CIVerdict.PENDING_OR_FAILED),
            ([_run(), _run(status="in_progress", conclusion=None)], CIVerdict.PENDING_OR_FAILED),
            ([_run(conclusion="cancelled")], CIVerdict.PENDING_OR_FAILED),
            ([], CIVerdict.PENDING_OR_FAILED),
        ],
    )
    def test_reduce_check_runs(self, check_runs, expected):
        assert reduce_check_runs(check_runs) == expected

    def test_is_ready(self, remote, repository):
        remote.check_runs[SHA] = [_run(name="lint"), _run(name="tests")]
        assert CheckRunsCheck(remote).is_ready(repository, SHA) is True
        assert remote.calls == [("list_check_runs", "acme/widgets", SHA)]

    def test_query_failure_fails_closed(self, remote, repository):
        remote.check_runs[SHA] = [_run()]
        remote.errors["list_check_runs"] = RemoteRequestError("boom", 500)
        assert CheckRunsCheck(remote).is_ready(repository, SHA) is False


class TestGetReadinessCheck:
    @pytest.mark.parametrize(
        ("ci_source", "cls"), [("statuses", CombinedStatusCheck), ("checks", CheckRunsCheck)]
    )
    def test_known_sources(self, remote, ci_source, cls):
        assert isinstance(get_readiness_check(ci_source, remote), cls)

    def test_unknown_source(self, remote):
        with pytest.raises(ValueError, match="Unknown CI source"):
            get_readiness_check("jenkins", remote)
