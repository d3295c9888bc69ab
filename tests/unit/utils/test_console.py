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

import io

from dependabot_triage.utils.console import get_console


class TestGetConsole:
    def test_is_shared(self):
        assert get_console() is get_console()

    def test_no_escape_codes_when_not_a_terminal(self, monkeypatch):
        out = io.StringIO()
        monkeypatch.setattr("sys.stdout", out)

        console = get_console()
        console.print("[error]Fatal error[/] and [success]approved[/]")

        assert not console.is_terminal
        assert out.getvalue() == "Fatal error and approved\n"
