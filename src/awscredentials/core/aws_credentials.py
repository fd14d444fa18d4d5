# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Resolution of stored AWS credentials into usable credentials.

A stored credential resolves to its static key pair, to the ambient SDK
credentials when no key is stored, or, when a role ARN is configured, to a
temporary session obtained from STS ``AssumeRole``.
"""

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from awscredentials.core.config import Settings
from awscredentials.core.exceptions import CredentialsResolutionError, MfaTokenRequiredError
from awscredentials.core.models import AWSCredentials, SessionCredentials

logger = logging.getLogger(__name__)

# Region used when the SDK region lookup yields nothing
DEFAULT_REGION = "us-west-2"


class CredentialsResolver:
    """Resolve :class:`AWSCredentials` using boto3."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    def resolve_region(self) -> str:
        """Get the region for STS calls.

        Uses the configured default region, then the SDK lookup chain
        (environment, shared config), then ``us-west-2``.
        """
        if self.settings.default_region:
            return self.settings.default_region

        region: Optional[str] = None
        try:
            region = boto3.session.Session().region_name
        except BotoCoreError as e:
            logger.warning(f"Could not find default region using SDK lookup: {e}")

        return region or DEFAULT_REGION

    def client_config(self) -> Optional[Config]:
        """Build the botocore client configuration, carrying the proxy if one is set."""
        if self.settings.proxy is None:
            return None
        return Config(proxies=self.settings.proxy.to_proxies())

    def build_client(
        self,
        service: str,
        credentials: Optional[SessionCredentials] = None,
        region: Optional[str] = None,
    ) -> Any:
        """Create a boto3 client bound to explicit or ambient credentials.

        Args:
            service: AWS service name, e.g. ``sts`` or ``ec2``
            credentials: Credentials to sign with; None uses the default chain
            region: Region name; None resolves it with :meth:`resolve_region`

        Returns:
            boto3 client
        """
        kwargs: Dict[str, Any] = {"region_name": region or self.resolve_region()}
        config = self.client_config()
        if config is not None:
            kwargs["config"] = config
        if credentials is not None:
            kwargs["aws_access_key_id"] = credentials.access_key_id
            kwargs["aws_secret_access_key"] = credentials.secret_access_key
            if credentials.session_token:
                kwargs["aws_session_token"] = credentials.session_token
        return boto3.client(service, **kwargs)

    def build_sts_client(
        self,
        credentials: Optional[SessionCredentials] = None,
        region: Optional[str] = None,
    ) -> Any:
        return self.build_client("sts", credentials, region)

    def get_default_credentials(self) -> SessionCredentials:
        """Get credentials from the default SDK chain (instance profile, environment, shared config)."""
        try:
            found = boto3.session.Session().get_credentials()
        except BotoCoreError as e:
            raise CredentialsResolutionError(f"Unable to load default AWS credentials: {e}") from e

        if found is None:
            raise CredentialsResolutionError(
                "No access key is stored and no default AWS credentials are available"
            )

        frozen = found.get_frozen_credentials()
        return SessionCredentials(
            access_key_id=frozen.access_key,
            secret_access_key=frozen.secret_key,
            session_token=frozen.token,
            provider_name=getattr(found, "method", None),
        )

    def assume_role(
        self,
        base: Optional[SessionCredentials],
        role_arn: str,
        role_session_name: Optional[str] = None,
        duration_seconds: Optional[int] = None,
        external_id: Optional[str] = None,
        serial_number: Optional[str] = None,
        token_code: Optional[str] = None,
    ) -> SessionCredentials:
        """Call STS AssumeRole and return the session credentials.

        Args:
            base: Credentials used to call STS; None delegates to the default chain
            role_arn: ARN of the role to assume
            role_session_name: Session name; defaults to the configured name
            duration_seconds: Session duration; None or non-positive leaves the STS default
            external_id: External ID required by the role's trust policy
            serial_number: MFA device serial number
            token_code: Current MFA token code

        Returns:
            Session credentials with expiration

        Raises:
            CredentialsResolutionError: If STS rejects the request
        """
        request: Dict[str, Any] = {
            "RoleArn": role_arn,
            "RoleSessionName": role_session_name or self.settings.role_session_name,
        }
        if duration_seconds and duration_seconds > 0:
            request["DurationSeconds"] = duration_seconds
        if external_id:
            request["ExternalId"] = external_id
        if serial_number:
            request["SerialNumber"] = serial_number
            request["TokenCode"] = token_code

        logger.info(f"Assuming role {role_arn} with session {request['RoleSessionName']}")
        try:
            client = self.build_sts_client(base)
            response = client.assume_role(**request)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            logger.warning(f"Unable to assume role [{role_arn}]: {error_code}")
            raise CredentialsResolutionError(
                f"Unable to assume role {role_arn}: {e}",
                details={"role_arn": role_arn, "error_code": error_code},
            ) from e
        except BotoCoreError as e:
            logger.warning(f"Unable to assume role [{role_arn}]: {e}")
            raise CredentialsResolutionError(
                f"Unable to assume role {role_arn}: {e}",
                details={"role_arn": role_arn},
            ) from e

        raw = response["Credentials"]
        return SessionCredentials(
            access_key_id=raw["AccessKeyId"],
            secret_access_key=raw["SecretAccessKey"],
            session_token=raw["SessionToken"],
            expiration=raw.get("Expiration"),
            provider_name="AssumeRole",
        )

    def _static_credentials(self, credential: AWSCredentials) -> SessionCredentials:
        return SessionCredentials(
            access_key_id=credential.access_key,
            secret_access_key=credential.secret_key.plain_text,
            provider_name="StaticCredentials",
        )

    def _base_credentials(self, credential: AWSCredentials) -> Optional[SessionCredentials]:
        # No stored key: STS is called with the ambient chain (instance profile delegation)
        if credential.has_static_key():
            return self._static_credentials(credential)
        return None

    def _assume_stored_role(
        self,
        credential: AWSCredentials,
        role_session_name: Optional[str],
        duration_seconds: int,
        mfa_token: Optional[str],
    ) -> SessionCredentials:
        serial_number = None
        if credential.requires_token():
            if not mfa_token:
                raise MfaTokenRequiredError(
                    f"Credential '{credential.id}' requires an MFA token",
                    details={"serial_number": credential.iam_mfa_serial_number},
                )
            serial_number = credential.iam_mfa_serial_number

        return self.assume_role(
            self._base_credentials(credential),
            credential.iam_role_arn,
            role_session_name=role_session_name,
            duration_seconds=duration_seconds,
            external_id=credential.iam_external_id or None,
            serial_number=serial_number,
            token_code=mfa_token if serial_number else None,
        )

    def get_credentials(
        self, credential: AWSCredentials, mfa_token: Optional[str] = None
    ) -> SessionCredentials:
        """Resolve a stored credential.

        Args:
            credential: Stored credential
            mfa_token: MFA token code, required when the credential has an MFA serial number

        Returns:
            Static, ambient or session credentials
        """
        if not credential.assumes_role():
            if credential.has_static_key():
                return self._static_credentials(credential)
            return self.get_default_credentials()

        return self._assume_stored_role(
            credential, None, credential.sts_token_duration, mfa_token
        )

    def get_credentials_with_req_params(
        self,
        credential: AWSCredentials,
        role_session_name: Optional[str],
        role_session_duration_seconds: int,
        mfa_token: Optional[str] = None,
    ) -> SessionCredentials:
        """Resolve a stored credential with a caller supplied session name and duration.

        A non-positive duration falls back to the credential's own duration.
        """
        if not credential.assumes_role():
            return self.get_credentials(credential)

        duration = role_session_duration_seconds
        if duration <= 0:
            duration = credential.sts_token_duration
        return self._assume_stored_role(credential, role_session_name, duration, mfa_token)


def get_credentials(
    credential: AWSCredentials,
    mfa_token: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> SessionCredentials:
    """Convenience function to resolve a stored credential."""
    return CredentialsResolver(settings).get_credentials(credential, mfa_token)
