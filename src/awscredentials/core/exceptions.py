# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Exceptions raised by awscredentials."""

from typing import Any, Dict, Optional


class AWSCredentialsError(Exception):
    """Base exception for credential operations."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details = details or {}


class ConfigError(AWSCredentialsError):
    """Raised when the settings file is malformed or unreadable."""


class CredentialsStoreError(AWSCredentialsError):
    """Raised when the credentials store cannot be read or written."""


class CredentialsNotFoundError(AWSCredentialsError):
    """Raised when no credential matches the requested id."""


class CredentialsResolutionError(AWSCredentialsError):
    """Raised when credentials cannot be resolved or a role cannot be assumed."""


class MfaTokenRequiredError(CredentialsResolutionError):
    """Raised when a credential with an MFA serial number is used without a token."""
