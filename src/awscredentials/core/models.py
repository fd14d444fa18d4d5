# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Data models for stored and resolved AWS credentials."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

STS_CREDENTIALS_DURATION_SECONDS = 3600
DEFAULT_STS_TOKEN_DURATION = STS_CREDENTIALS_DURATION_SECONDS


class CredentialsScope(Enum):
    """Credential scope levels."""

    GLOBAL = "global"
    SYSTEM = "system"


def _fix_null(value: Optional[str]) -> str:
    return "" if value is None else value


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class Secret:
    """A secret string that never shows up in str() or repr()."""

    __slots__ = ("_value",)

    def __init__(self, value: str = "") -> None:
        self._value = value

    @classmethod
    def from_string(cls, value: Optional[str]) -> "Secret":
        """Create a secret, treating None as empty."""
        if isinstance(value, Secret):
            return value
        return cls(_fix_null(value))

    @property
    def plain_text(self) -> str:
        return self._value

    def is_blank(self) -> bool:
        return _is_blank(self._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Secret):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __str__(self) -> str:
        return "****" if self._value else ""

    def __repr__(self) -> str:
        return "Secret(****)"


@dataclass(frozen=True)
class SessionCredentials:
    """Resolved credentials, optionally carrying an STS session token."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: Optional[str] = field(default=None, repr=False)
    expiration: Optional[datetime] = None
    provider_name: Optional[str] = None

    @property
    def is_session(self) -> bool:
        return bool(self.session_token)


@dataclass
class AWSCredentials:
    """An AWS credential as kept in the credentials store.

    The access key may be blank, in which case resolution falls back to the
    ambient SDK credential chain (instance profile, environment, shared
    config files).
    """

    id: str
    access_key: str = ""
    secret_key: Secret = field(default_factory=Secret)
    description: str = ""
    scope: CredentialsScope = CredentialsScope.GLOBAL
    iam_role_arn: str = ""
    iam_mfa_serial_number: str = ""
    iam_external_id: str = ""
    _sts_token_duration: Optional[int] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.id = _fix_null(self.id)
        self.access_key = _fix_null(self.access_key)
        self.description = _fix_null(self.description)
        self.iam_role_arn = _fix_null(self.iam_role_arn)
        self.iam_mfa_serial_number = _fix_null(self.iam_mfa_serial_number)
        self.iam_external_id = _fix_null(self.iam_external_id)
        self.secret_key = Secret.from_string(self.secret_key)  # type: ignore[arg-type]
        if isinstance(self.scope, str):
            self.scope = CredentialsScope(self.scope.lower())
        # normalise through the setter
        self.sts_token_duration = self._sts_token_duration

    @property
    def sts_token_duration(self) -> int:
        """Session duration used for AssumeRole, in seconds."""
        if self._sts_token_duration is None:
            return DEFAULT_STS_TOKEN_DURATION
        return self._sts_token_duration

    @sts_token_duration.setter
    def sts_token_duration(self, value: Optional[int]) -> None:
        if value is None or int(value) == DEFAULT_STS_TOKEN_DURATION:
            self._sts_token_duration = None
        else:
            self._sts_token_duration = int(value)

    def has_static_key(self) -> bool:
        return not _is_blank(self.access_key) or not self.secret_key.is_blank()

    def requires_token(self) -> bool:
        return not _is_blank(self.iam_mfa_serial_number)

    def assumes_role(self) -> bool:
        return not _is_blank(self.iam_role_arn)

    @property
    def display_name(self) -> str:
        if not self.assumes_role():
            return self.access_key
        return f"{self.access_key}:{self.iam_role_arn}"

    @property
    def name(self) -> str:
        description = self.description.strip()
        if description:
            return f"{self.display_name} ({description})"
        return self.display_name

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to the stored form. The secret key is written in plain text."""
        data: Dict[str, Any] = {
            "id": self.id,
            "scope": self.scope.name,
            "accessKey": self.access_key,
            "secretKey": self.secret_key.plain_text,
        }
        if self.description:
            data["description"] = self.description
        if self.iam_role_arn:
            data["iamRoleArn"] = self.iam_role_arn
        if self.iam_external_id:
            data["iamExternalId"] = self.iam_external_id
        if self.iam_mfa_serial_number:
            data["iamMfaSerialNumber"] = self.iam_mfa_serial_number
        if self._sts_token_duration is not None:
            data["stsTokenDuration"] = self._sts_token_duration
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AWSCredentials":
        """Build a credential from its stored form."""
        if not isinstance(data, dict):
            raise TypeError(f"Credential entry must be a mapping, not {type(data).__name__}")
        if not data.get("id"):
            raise ValueError("Credential entry is missing an 'id'")
        return cls(
            id=data["id"],
            access_key=data.get("accessKey"),  # type: ignore[arg-type]
            secret_key=Secret.from_string(data.get("secretKey")),
            description=data.get("description"),  # type: ignore[arg-type]
            scope=data.get("scope") or CredentialsScope.GLOBAL,  # type: ignore[arg-type]
            iam_role_arn=data.get("iamRoleArn"),  # type: ignore[arg-type]
            iam_mfa_serial_number=data.get("iamMfaSerialNumber"),  # type: ignore[arg-type]
            iam_external_id=data.get("iamExternalId"),  # type: ignore[arg-type]
            _sts_token_duration=data.get("stsTokenDuration"),
        )
