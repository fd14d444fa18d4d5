# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Masking of bound secret values in command output and log records."""

import logging
from typing import Iterable, List

MASK = "****"


def mask(text: str, secrets: Iterable[str]) -> str:
    """Replace every occurrence of each secret in *text* with ``****``.

    Longer secrets are replaced first so a secret containing another one is
    never partially revealed.
    """
    for secret in sorted({s for s in secrets if s}, key=len, reverse=True):
        text = text.replace(secret, MASK)
    return text


class SecretMaskingFilter(logging.Filter):
    """Logging filter that masks registered secrets in formatted messages."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self.secrets: List[str] = [s for s in secrets if s]

    def add_secret(self, secret: str) -> None:
        if secret and secret not in self.secrets:
            self.secrets.append(secret)

    def filter(self, record: logging.LogRecord) -> bool:
        if self.secrets:
            message = record.getMessage()
            masked = mask(message, self.secrets)
            if masked != message:
                record.msg = masked
                record.args = None
        return True
