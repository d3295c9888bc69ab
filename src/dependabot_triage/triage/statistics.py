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
"""Run statistics folded from the engine's event stream."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass
from functools import reduce

from dependabot_triage.triage.models import TriageEvent, TriageOutcome

_FIELDS = {
    TriageOutcome.SYNCED: "synced",
    TriageOutcome.APPROVED: "approved",
    TriageOutcome.SKIPPED_NOT_GREEN: "skipped_not_green",
    TriageOutcome.SKIPPED_OTHER: "skipped_other",
    TriageOutcome.ACCESS_BLOCKED: "access_blocked",
}


@dataclass(frozen=True)
class RunStatistics:
    synced: int = 0
    approved: int = 0
    skipped_not_green: int = 0
    skipped_other: int = 0
    access_blocked: int = 0

    def add(self, outcome: TriageOutcome) -> RunStatistics:
        field_name = _FIELDS[outcome]
        return dataclasses.replace(self, **{field_name: getattr(self, field_name) + 1})

    @property
    def total(self) -> int:
        return sum(dataclasses.astuple(self))

    def count(self, outcome: TriageOutcome) -> int:
        return getattr(self, _FIELDS[outcome])

    def rows(self) -> list[tuple[str, int]]:
        return [
            ("Synced with base", self.synced),
            ("Approved", self.approved),
            ("Skipped (CI not green)", self.skipped_not_green),
            ("Skipped (other)", self.skipped_other),
            ("Blocked (no access)", self.access_blocked),
        ]


def tally(events: Iterable[TriageEvent], initial: RunStatistics | None = None) -> RunStatistics:
    return reduce(lambda stats, event: stats.add(event.outcome), events, initial or RunStatistics())
