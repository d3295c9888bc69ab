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
"""Per-repository, per-pull-request triage of dependency-bot pull requests."""

from __future__ import annotations

from dependabot_triage.triage.access_gate import AccessGate
from dependabot_triage.triage.approval import ApprovalAction
from dependabot_triage.triage.engine import TriageEngine, decide, is_dependency_bot
from dependabot_triage.triage.freshness import BranchFreshnessCheck
from dependabot_triage.triage.readiness import CheckRunsCheck, CombinedStatusCheck, ReadinessCheck
from dependabot_triage.triage.statistics import RunStatistics, tally

__all__ = [
    "AccessGate",
    "ApprovalAction",
    "BranchFreshnessCheck",
    "CheckRunsCheck",
    "CombinedStatusCheck",
    "ReadinessCheck",
    "RunStatistics",
    "TriageEngine",
    "decide",
    "is_dependency_bot",
    "tally",
]
