# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Validation of AWS credentials against the live AWS API.

Credentials are checked by assuming the configured role, if any, and then
listing the EC2 availability zones in ``us-east-1``.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from awscredentials.core.aws_credentials import CredentialsResolver
from awscredentials.core.config import Settings
from awscredentials.core.exceptions import CredentialsResolutionError
from awscredentials.core.models import DEFAULT_STS_TOKEN_DURATION, SessionCredentials

logger = logging.getLogger(__name__)

# TODO: validate with sts:GetCallerIdentity instead of requiring ec2:DescribeAvailabilityZones
VALIDATION_REGION = "us-east-1"

SPECIFY_ACCESS_KEY_ID = "Specify the Access Key ID"
SPECIFY_SECRET_ACCESS_KEY = "Specify the Secret Access Key"
SPECIFY_MFA_TOKEN = "Specify the MFA token"
NOT_ABLE_TO_ASSUME_ROLE = "Unable to assume role."


class ValidationKind(Enum):
    """Outcome of a validation."""
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class FormValidation:
    """Result of validating a set of credential fields."""
    kind: ValidationKind
    message: str = ""

    @classmethod
    def ok(cls, message: str = "") -> "FormValidation":
        return cls(ValidationKind.OK, message)

    @classmethod
    def warning(cls, message: str) -> "FormValidation":
        return cls(ValidationKind.WARNING, message)

    @classmethod
    def error(cls, message: str) -> "FormValidation":
        return cls(ValidationKind.ERROR, message)

    @property
    def is_error(self) -> bool:
        return self.kind is ValidationKind.ERROR


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def check_secret_key(
    access_key: Optional[str],
    secret_key: Optional[str],
    iam_role_arn: Optional[str] = None,
    iam_mfa_serial_number: Optional[str] = None,
    iam_mfa_token: Optional[str] = None,
    sts_token_duration: Optional[int] = None,
    iam_external_id: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> FormValidation:
    """
    Check a set of credential fields against AWS.

    Args:
        access_key: AWS access key ID
        secret_key: AWS secret access key
        iam_role_arn: Optional role to assume before checking
        iam_mfa_serial_number: MFA device serial; requires iam_mfa_token
        iam_mfa_token: Current MFA token code
        sts_token_duration: Session duration for the role
        iam_external_id: External ID for the role
        settings: Settings carrying proxy and session name

    Returns:
        FormValidation describing the outcome
    """
    # Nothing stored means instance profile credentials, which are not checked here
    if _is_blank(access_key) and _is_blank(secret_key):
        return FormValidation.ok()
    if _is_blank(access_key):
        return FormValidation.error(SPECIFY_ACCESS_KEY_ID)
    if _is_blank(secret_key):
        return FormValidation.error(SPECIFY_SECRET_ACCESS_KEY)

    resolver = CredentialsResolver(settings)
    credentials = SessionCredentials(
        access_key_id=access_key,  # type: ignore[arg-type]
        secret_access_key=secret_key,  # type: ignore[arg-type]
    )

    if not _is_blank(iam_role_arn):
        serial_number = None
        if not _is_blank(iam_mfa_serial_number):
            if _is_blank(iam_mfa_token):
                return FormValidation.error(SPECIFY_MFA_TOKEN)
            serial_number = iam_mfa_serial_number

        try:
            credentials = resolver.assume_role(
                credentials,
                iam_role_arn,  # type: ignore[arg-type]
                duration_seconds=sts_token_duration or DEFAULT_STS_TOKEN_DURATION,
                external_id=iam_external_id or None,
                serial_number=serial_number,
                token_code=iam_mfa_token if serial_number else None,
            )
        except CredentialsResolutionError as e:
            logger.warning(f"Unable to assume role [{iam_role_arn}]: {e}")
            return FormValidation.error(f"{NOT_ABLE_TO_ASSUME_ROLE} Check the log for more details")

    return check_ec2_access(resolver, credentials)


def check_ec2_access(resolver: CredentialsResolver, credentials: SessionCredentials) -> FormValidation:
    """List EC2 availability zones with the given credentials and classify the outcome."""
    try:
        ec2 = resolver.build_client("ec2", credentials, VALIDATION_REGION)
        zones = ec2.describe_availability_zones().get("AvailabilityZones", [])
        return FormValidation.ok(
            f"These credentials are valid and have access to {len(zones)} availability zones"
        )
    except ClientError as e:
        status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        error = e.response.get("Error", {})
        if status == 401:
            return FormValidation.warning(f"These credentials are not valid: {e}")
        if status == 403:
            return FormValidation.ok(
                f"These credentials are valid but do not have access to the \"ec2\" service "
                f"in the region \"{VALIDATION_REGION}\". This is not a problem if you need to "
                f"access other services or other regions. Message: "
                f"\"{error.get('Message', '')} ({error.get('Code', '')})\""
            )
        return FormValidation.error(str(e))
    except BotoCoreError as e:
        return FormValidation.error(str(e))
