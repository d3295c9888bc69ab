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

from functools import lru_cache

from rich.console import Console
from rich.theme import Theme

_THEME = Theme(
    {
        "info": "bright_blue",
        "success": "green",
        "warning": "bright_yellow",
        "error": "red",
    }
)


@lru_cache(maxsize=None)
def get_console() -> Console:
    # colors only when writing to a terminal, piped output stays plain
    return Console(force_terminal=None, width=120, theme=_THEME)
