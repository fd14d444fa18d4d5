# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
Binding of AWS credentials to environment variables.

A binding names the variables that receive the access key, secret key and
session token of a stored credential, optionally assuming an extra role on
top of it, and runs commands with those variables set.
"""

import logging
import os
import subprocess
import sys
import threading
from typing import IO, Any, Dict, List, Mapping, Optional, Sequence, Set, TextIO

from awscredentials.core.aws_credentials import CredentialsResolver
from awscredentials.core.config import DEFAULT_ROLE_SESSION_NAME, Settings
from awscredentials.core.exceptions import CredentialsNotFoundError
from awscredentials.core.masking import SecretMaskingFilter, mask
from awscredentials.core.models import AWSCredentials, SessionCredentials
from awscredentials.core.store import CredentialsStore

logger = logging.getLogger(__name__)

DEFAULT_ACCESS_KEY_ID_VARIABLE_NAME = "AWS_ACCESS_KEY_ID"
DEFAULT_SECRET_ACCESS_KEY_VARIABLE_NAME = "AWS_SECRET_ACCESS_KEY"
DEFAULT_SESSION_TOKEN_VARIABLE_NAME = "AWS_SESSION_TOKEN"


def _default_if_blank(value: Optional[str], default: str) -> str:
    if value is None or not value.strip():
        return default
    return value


class AmazonWebServicesCredentialsBinding:
    """Bind a stored AWS credential to environment variables."""

    def __init__(
        self,
        access_key_variable: Optional[str],
        secret_key_variable: Optional[str],
        session_token_variable: Optional[str],
        credentials_id: str,
    ) -> None:
        """Initialize the binding.

        Args:
            access_key_variable: Variable for the access key; blank means AWS_ACCESS_KEY_ID
            secret_key_variable: Variable for the secret key; blank means AWS_SECRET_ACCESS_KEY
            session_token_variable: Variable for the session token; blank means AWS_SESSION_TOKEN
            credentials_id: Id of the stored credential
        """
        self.credentials_id = credentials_id
        self.access_key_variable = _default_if_blank(
            access_key_variable, DEFAULT_ACCESS_KEY_ID_VARIABLE_NAME
        )
        self.secret_key_variable = _default_if_blank(
            secret_key_variable, DEFAULT_SECRET_ACCESS_KEY_VARIABLE_NAME
        )
        self.session_token_variable = _default_if_blank(
            session_token_variable, DEFAULT_SESSION_TOKEN_VARIABLE_NAME
        )
        self.role_arn: Optional[str] = None
        self.role_session_name: Optional[str] = None
        self.role_session_duration_seconds: int = 0

    def variables(self) -> Set[str]:
        """Names of all variables this binding may set."""
        return {self.access_key_variable, self.secret_key_variable, self.session_token_variable}

    def _lookup(self, store: CredentialsStore) -> AWSCredentials:
        credential = store.get_credentials(self.credentials_id)
        if credential is None:
            raise CredentialsNotFoundError(
                f"Could not find credentials entry with ID '{self.credentials_id}'"
            )
        return credential

    def resolve(
        self,
        store: CredentialsStore,
        mfa_token: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> SessionCredentials:
        """Resolve the bound credential, assuming the binding's role when one is set."""
        resolver = CredentialsResolver(settings)
        credentials = resolver.get_credentials(self._lookup(store), mfa_token)

        if self.role_arn:
            credentials = resolver.assume_role(
                credentials,
                self.role_arn,
                role_session_name=_default_if_blank(
                    self.role_session_name, DEFAULT_ROLE_SESSION_NAME
                ),
                duration_seconds=self.role_session_duration_seconds,
            )
        return credentials

    def bind(
        self,
        store: CredentialsStore,
        mfa_token: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> Dict[str, str]:
        """Resolve the credential and return the variables to set.

        The session token variable is only set when the resolved credentials
        carry a session token.
        """
        credentials = self.resolve(store, mfa_token, settings)
        environment = {
            self.access_key_variable: credentials.access_key_id,
            self.secret_key_variable: credentials.secret_access_key,
        }
        if credentials.is_session:
            environment[self.session_token_variable] = credentials.session_token  # type: ignore[assignment]
        logger.debug(f"Bound credential {self.credentials_id} to {sorted(environment)}")
        return environment

    @staticmethod
    def secret_values(environment: Mapping[str, str]) -> List[str]:
        """Values that must be masked in any output."""
        return [value for value in environment.values() if value]


def to_bindings(var_name: str, credentials_id: str) -> List[AmazonWebServicesCredentialsBinding]:
    """Bindings for an ``environment { VAR = credentials('id') }`` style declaration."""
    return [
        AmazonWebServicesCredentialsBinding(
            f"{var_name}_AWS_KEY_ID",
            f"{var_name}_AWS_SECRET",
            f"{var_name}_AWS_SESSION_TOKEN",
            credentials_id,
        )
    ]


def with_credentials_parameters(credentials_id: str) -> List[Dict[str, Any]]:
    """Parameters of the equivalent ``withCredentials`` binding, with ``%s`` standing for the variable name."""
    return [
        {
            "$class": AmazonWebServicesCredentialsBinding.__name__,
            "keyIdVariable": "%s_AWS_KEY_ID",
            "secretVariable": "%s_AWS_SECRET",
            "sessionTokenVariable": "%s_AWS_SESSION_TOKEN",
            "credentialsId": credentials_id,
        }
    ]


def _copy_masked(source: Optional[IO[str]], target: TextIO, secrets: Sequence[str]) -> None:
    for line in source or []:
        target.write(mask(line, secrets))
    target.flush()


def run_with_environment(
    command: Sequence[str],
    environment: Mapping[str, str],
    mask_output: bool = True,
    output: Optional[TextIO] = None,
    error_output: Optional[TextIO] = None,
) -> int:
    """
    Run a command with the bound variables merged over the current environment.

    When masking, stdout and stderr are read separately and each is masked
    into its own stream. Bytes that are not valid UTF-8 are replaced with
    U+FFFD.

    Args:
        command: Command and arguments
        environment: Bound variables
        mask_output: Whether to replace secret values in the output with ``****``
        output: Stream receiving the command's stdout; defaults to stdout
        error_output: Stream receiving the command's stderr; defaults to stderr

    Returns:
        Exit code of the command
    """
    env = dict(os.environ)
    env.update(environment)
    secrets = AmazonWebServicesCredentialsBinding.secret_values(environment)

    log_filter = SecretMaskingFilter(secrets)
    handlers = list(logging.getLogger().handlers)
    for handler in handlers:
        handler.addFilter(log_filter)
    try:
        if not mask_output:
            return subprocess.run(list(command), env=env).returncode

        names = " or ".join(f"${name}" for name in sorted(environment))
        logger.info(f"Masking supported pattern matches of {names}")

        with subprocess.Popen(
            list(command),
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
        ) as process:
            stderr_copier = threading.Thread(
                target=_copy_masked,
                args=(process.stderr, error_output or sys.stderr, secrets),
                daemon=True,
            )
            stderr_copier.start()
            try:
                _copy_masked(process.stdout, output or sys.stdout, secrets)
            except BaseException:
                process.kill()
                raise
            finally:
                stderr_copier.join()
        return process.returncode
    finally:
        for handler in handlers:
            handler.removeFilter(log_filter)
