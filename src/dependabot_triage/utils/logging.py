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
"""structlog configuration and masking of secrets in log output."""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

REDACTED = "***"


class SecretsMasker:
    """
    structlog processor replacing registered secret values with ``***``.

    Applies to the rendered event text, positional arguments and string values of
    the event dict, so a token never reaches the terminal even inside an error message.
    """

    def __init__(self):
        self.secrets: set[str] = set()

    def add_mask(self, secret: str | None) -> None:
        if secret and secret.strip():
            self.secrets.add(secret.strip())

    def redact(self, value: Any) -> Any:
        if isinstance(value, str):
            for secret in self.secrets:
                value = value.replace(secret, REDACTED)
            return value
        if isinstance(value, (list, tuple)):
            return type(value)(self.redact(item) for item in value)
        if isinstance(value, BaseException):
            return self.redact(str(value))
        return value

    def __call__(self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]):
        if not self.secrets:
            return event_dict
        for key, value in event_dict.items():
            event_dict[key] = self.redact(value)
        return event_dict


_secrets_masker = SecretsMasker()


def mask_secret(secret: str | None) -> None:
    """Register a value that must never appear in log output."""
    _secrets_masker.add_mask(secret)


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
            structlog.processors.format_exc_info,
            _secrets_masker,
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(), exception_formatter=structlog.dev.plain_traceback
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
