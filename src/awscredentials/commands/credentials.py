# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
AWS credentials commands.

This module provides CLI commands to manage stored AWS credentials, check
them against AWS and bind them into the environment of a command.
"""

import json
import logging
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
from rich.console import Console

from awscredentials.core.binding import (
    AmazonWebServicesCredentialsBinding,
    run_with_environment,
    to_bindings,
)
from awscredentials.core.config import CONFIG_ENV, Settings, load_settings
from awscredentials.core.exceptions import AWSCredentialsError
from awscredentials.core.models import AWSCredentials, CredentialsScope, Secret
from awscredentials.core.output import OUTPUT_FORMATS, format_and_output
from awscredentials.core.store import CredentialsStore, dump_casc, load_casc
from awscredentials.core.validation import FormValidation, ValidationKind, check_secret_key

# Constants
CONFIG_HELP = "Path to the awscredentials settings file"
OUTPUT_FORMAT_HELP = f"Output format: {', '.join(OUTPUT_FORMATS)}"
ACCESS_KEY_HELP = "AWS access key ID (leave empty to use instance profile credentials)"
SECRET_KEY_HELP = "AWS secret access key"
ROLE_ARN_HELP = "IAM role ARN to assume"
EXTERNAL_ID_HELP = "External ID required by the role trust policy"
MFA_SERIAL_HELP = "MFA device serial number or ARN"
MFA_TOKEN_HELP = "Current MFA token code"
DURATION_HELP = "STS session duration in seconds"

# Environment variable names
ACCESS_KEY_ENV = "AWSCREDENTIALS_ACCESS_KEY"
SECRET_KEY_ENV = "AWSCREDENTIALS_SECRET_KEY"
MFA_TOKEN_ENV = "AWSCREDENTIALS_MFA_TOKEN"

logger = logging.getLogger(__name__)
console = Console()

credentials_app = typer.Typer(help="Manage and bind AWS credentials")


def _open_store(config_file: Optional[Path]) -> Tuple[Settings, CredentialsStore]:
    """Load settings and open the credentials store they point at."""
    try:
        settings = load_settings(config_file)
    except AWSCredentialsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    return settings, CredentialsStore(settings.store_path)


def _print_validation(result: FormValidation) -> None:
    if result.kind is ValidationKind.OK:
        console.print(f"[green]OK[/green] {result.message}".rstrip())
    elif result.kind is ValidationKind.WARNING:
        console.print(f"[yellow]Warning: {result.message}[/yellow]")
    else:
        console.print(f"[red]Error: {result.message}[/red]")


def _credential_row(credential: AWSCredentials) -> Dict[str, Any]:
    return {
        "id": credential.id,
        "name": credential.name,
        "scope": credential.scope.value,
        "access_key": credential.access_key,
        "has_secret_key": not credential.secret_key.is_blank(),
        "iam_role_arn": credential.iam_role_arn,
        "iam_external_id": credential.iam_external_id,
        "iam_mfa_serial_number": credential.iam_mfa_serial_number,
        "sts_token_duration": credential.sts_token_duration,
        "description": credential.description,
    }


@credentials_app.command("list")
def list_credentials(
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-c", help=CONFIG_HELP, envvar=CONFIG_ENV
    ),
    output_format: str = typer.Option("table", "--format", "-f", help=OUTPUT_FORMAT_HELP),
) -> None:
    """List stored AWS credentials. Secret keys are never shown."""
    _, store = _open_store(config_file)
    try:
        rows = [_credential_row(c) for c in store.list_credentials()]
        table_config = {
            "title": "AWS Credentials",
            "columns": [
                {"name": "ID", "field": "id", "style": "cyan"},
                {"name": "Name", "field": "name", "style": "green"},
                {"name": "Scope", "field": "scope", "style": "magenta"},
                {"name": "Role", "field": "iam_role_arn", "style": "blue"},
                {"name": "MFA", "field": "iam_mfa_serial_number", "style": "yellow"},
                {"name": "Duration", "field": "sts_token_duration"},
            ],
        }
        format_and_output(rows, output_format, table_config)
    except (AWSCredentialsError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@credentials_app.command("add")
def add_credentials(
    credentials_id: str = typer.Argument(..., help="Identifier used to reference the credential"),
    access_key: Optional[str] = typer.Option(
        None, "--access-key", "-a", help=ACCESS_KEY_HELP, envvar=ACCESS_KEY_ENV
    ),
    secret_key: Optional[str] = typer.Option(
        None, "--secret-key", "-s", help=SECRET_KEY_HELP, envvar=SECRET_KEY_ENV
    ),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Description"),
    scope: str = typer.Option("global", "--scope", help="Credential scope: global, system"),
    role_arn: Optional[str] = typer.Option(None, "--role-arn", help=ROLE_ARN_HELP),
    external_id: Optional[str] = typer.Option(None, "--external-id", help=EXTERNAL_ID_HELP),
    mfa_serial: Optional[str] = typer.Option(None, "--mfa-serial", help=MFA_SERIAL_HELP),
    duration: Optional[int] = typer.Option(None, "--duration", help=DURATION_HELP),
    mfa_token: Optional[str] = typer.Option(
        None, "--mfa-token", help=MFA_TOKEN_HELP, envvar=MFA_TOKEN_ENV
    ),
    no_validate: bool = typer.Option(
        False, "--no-validate", help="Do not check the credentials against AWS"
    ),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing credential"),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-c", help=CONFIG_HELP, envvar=CONFIG_ENV
    ),
) -> None:
    """Store an AWS credential.

    The credential is checked against AWS first unless --no-validate is given
    or validate_against_aws is disabled in the settings.

    Examples:
        # Static key pair
        awscredentials credentials add deploy --access-key AKIA... --secret-key ...

        # Key pair that assumes a role
        awscredentials credentials add deploy-prod --access-key AKIA... --secret-key ... \\
            --role-arn arn:aws:iam::123456789012:role/deploy --duration 900

        # Instance profile credentials assuming a role
        awscredentials credentials add ci --role-arn arn:aws:iam::123456789012:role/ci
    """
    settings, store = _open_store(config_file)

    try:
        credential = AWSCredentials(
            id=credentials_id,
            access_key=access_key,  # type: ignore[arg-type]
            secret_key=Secret.from_string(secret_key),
            description=description,  # type: ignore[arg-type]
            scope=CredentialsScope(scope.lower()),
            iam_role_arn=role_arn,  # type: ignore[arg-type]
            iam_mfa_serial_number=mfa_serial,  # type: ignore[arg-type]
            iam_external_id=external_id,  # type: ignore[arg-type]
        )
        credential.sts_token_duration = duration
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if settings.validate_against_aws and not no_validate:
        result = check_secret_key(
            access_key,
            secret_key,
            iam_role_arn=role_arn,
            iam_mfa_serial_number=mfa_serial,
            iam_mfa_token=mfa_token,
            sts_token_duration=credential.sts_token_duration,
            iam_external_id=external_id,
            settings=settings,
        )
        _print_validation(result)
        if result.is_error:
            raise typer.Exit(1)

    try:
        store.add_credentials(credential, overwrite=overwrite)
    except AWSCredentialsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Stored credential '{credential.id}' ({credential.name})[/green]")


@credentials_app.command("remove")
def remove_credentials(
    credentials_id: str = typer.Argument(..., help="Identifier of the credential to remove"),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-c", help=CONFIG_HELP, envvar=CONFIG_ENV
    ),
) -> None:
    """Remove a stored AWS credential."""
    _, store = _open_store(config_file)
    try:
        removed = store.remove_credentials(credentials_id)
    except AWSCredentialsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not removed:
        console.print(f"[red]Error: Credential '{credentials_id}' not found[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Removed credential '{credentials_id}'[/green]")


@credentials_app.command("validate")
def validate_credentials(
    access_key: Optional[str] = typer.Option(
        None, "--access-key", "-a", help=ACCESS_KEY_HELP, envvar=ACCESS_KEY_ENV
    ),
    secret_key: Optional[str] = typer.Option(
        None, "--secret-key", "-s", help=SECRET_KEY_HELP, envvar=SECRET_KEY_ENV
    ),
    role_arn: Optional[str] = typer.Option(None, "--role-arn", help=ROLE_ARN_HELP),
    external_id: Optional[str] = typer.Option(None, "--external-id", help=EXTERNAL_ID_HELP),
    mfa_serial: Optional[str] = typer.Option(None, "--mfa-serial", help=MFA_SERIAL_HELP),
    mfa_token: Optional[str] = typer.Option(
        None, "--mfa-token", help=MFA_TOKEN_HELP, envvar=MFA_TOKEN_ENV
    ),
    duration: Optional[int] = typer.Option(None, "--duration", help=DURATION_HELP),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-c", help=CONFIG_HELP, envvar=CONFIG_ENV
    ),
) -> None:
    """Check a key pair (and optional role) against AWS without storing it."""
    settings, _ = _open_store(config_file)
    result = check_secret_key(
        access_key,
        secret_key,
        iam_role_arn=role_arn,
        iam_mfa_serial_number=mfa_serial,
        iam_mfa_token=mfa_token,
        sts_token_duration=duration,
        iam_external_id=external_id,
        settings=settings,
    )
    _print_validation(result)
    if result.is_error:
        raise typer.Exit(1)


def _build_binding(
    credentials_id: str,
    prefix: Optional[str],
    access_key_variable: Optional[str],
    secret_key_variable: Optional[str],
    session_token_variable: Optional[str],
    role_arn: Optional[str],
    role_session_name: Optional[str],
    role_session_duration: int,
) -> AmazonWebServicesCredentialsBinding:
    if prefix:
        binding = to_bindings(prefix, credentials_id)[0]
    else:
        binding = AmazonWebServicesCredentialsBinding(
            access_key_variable, secret_key_variable, session_token_variable, credentials_id
        )
    binding.role_arn = role_arn
    binding.role_session_name = role_session_name
    binding.role_session_duration_seconds = role_session_duration
    return binding


@credentials_app.command("env")
def env_credentials(
    credentials_id: str = typer.Argument(..., help="Identifier of the credential to bind"),
    access_key_variable: Optional[str] = typer.Option(
        None, "--access-key-variable", help="Variable for the access key (default AWS_ACCESS_KEY_ID)"
    ),
    secret_key_variable: Optional[str] = typer.Option(
        None, "--secret-key-variable", help="Variable for the secret key (default AWS_SECRET_ACCESS_KEY)"
    ),
    session_token_variable: Optional[str] = typer.Option(
        None, "--session-token-variable", help="Variable for the session token (default AWS_SESSION_TOKEN)"
    ),
    prefix: Optional[str] = typer.Option(
        None, "--prefix", help="Use <PREFIX>_AWS_KEY_ID, <PREFIX>_AWS_SECRET and <PREFIX>_AWS_SESSION_TOKEN"
    ),
    role_arn: Optional[str] = typer.Option(None, "--role-arn", help="Additional role to assume"),
    role_session_name: Optional[str] = typer.Option(None, "--role-session-name", help="Session name for --role-arn"),
    role_session_duration: int = typer.Option(0, "--role-session-duration", help="Session duration for --role-arn"),
    mfa_token: Optional[str] = typer.Option(
        None, "--mfa-token", help=MFA_TOKEN_HELP, envvar=MFA_TOKEN_ENV
    ),
    output_format: str = typer.Option("shell", "--format", "-f", help="Output format: shell, json"),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-c", help=CONFIG_HELP, envvar=CONFIG_ENV
    ),
) -> None:
    """Print the environment variables bound from a stored credential.

    Examples:
        eval "$(awscredentials credentials env deploy)"
    """
    settings, store = _open_store(config_file)
    binding = _build_binding(
        credentials_id, prefix, access_key_variable, secret_key_variable,
        session_token_variable, role_arn, role_session_name, role_session_duration,
    )
    try:
        environment = binding.bind(store, mfa_token, settings)
    except AWSCredentialsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if output_format == "json":
        print(json.dumps(environment, indent=2))
    elif output_format == "shell":
        for name, value in environment.items():
            print(f"export {name}={shlex.quote(value)}")
    else:
        console.print(f"[red]Error: Unsupported output format: {output_format}[/red]")
        raise typer.Exit(1)


@credentials_app.command(
    "exec",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def exec_credentials(
    credentials_id: str = typer.Argument(..., help="Identifier of the credential to bind"),
    command: List[str] = typer.Argument(..., help="Command to run, after --"),
    access_key_variable: Optional[str] = typer.Option(
        None, "--access-key-variable", help="Variable for the access key (default AWS_ACCESS_KEY_ID)"
    ),
    secret_key_variable: Optional[str] = typer.Option(
        None, "--secret-key-variable", help="Variable for the secret key (default AWS_SECRET_ACCESS_KEY)"
    ),
    session_token_variable: Optional[str] = typer.Option(
        None, "--session-token-variable", help="Variable for the session token (default AWS_SESSION_TOKEN)"
    ),
    prefix: Optional[str] = typer.Option(
        None, "--prefix", help="Use <PREFIX>_AWS_KEY_ID, <PREFIX>_AWS_SECRET and <PREFIX>_AWS_SESSION_TOKEN"
    ),
    role_arn: Optional[str] = typer.Option(None, "--role-arn", help="Additional role to assume"),
    role_session_name: Optional[str] = typer.Option(None, "--role-session-name", help="Session name for --role-arn"),
    role_session_duration: int = typer.Option(0, "--role-session-duration", help="Session duration for --role-arn"),
    mfa_token: Optional[str] = typer.Option(
        None, "--mfa-token", help=MFA_TOKEN_HELP, envvar=MFA_TOKEN_ENV
    ),
    no_mask: bool = typer.Option(False, "--no-mask", help="Do not mask bound secrets in the command output"),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-c", help=CONFIG_HELP, envvar=CONFIG_ENV
    ),
) -> None:
    """Run a command with AWS credentials bound into its environment.

    Examples:
        awscredentials credentials exec deploy -- aws s3 ls

        awscredentials credentials exec deploy --role-arn arn:aws:iam::123456789012:role/ops -- terraform plan
    """
    settings, store = _open_store(config_file)
    binding = _build_binding(
        credentials_id, prefix, access_key_variable, secret_key_variable,
        session_token_variable, role_arn, role_session_name, role_session_duration,
    )
    try:
        environment = binding.bind(store, mfa_token, settings)
    except AWSCredentialsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    try:
        exit_code = run_with_environment(command, environment, mask_output=not no_mask)
    except OSError as e:
        console.print(f"[red]Error: Failed to run {command[0]}: {e}[/red]")
        raise typer.Exit(127)

    if exit_code != 0:
        raise typer.Exit(exit_code)


@credentials_app.command("import-casc")
def import_casc(
    casc_file: Path = typer.Argument(..., help="Configuration-as-code YAML file"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace existing credentials"),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-c", help=CONFIG_HELP, envvar=CONFIG_ENV
    ),
) -> None:
    """Import AWS credentials from a configuration-as-code file."""
    _, store = _open_store(config_file)
    try:
        imported = load_casc(casc_file)
        skipped = 0
        for credential in imported:
            if store.credential_exists(credential.id) and not overwrite:
                console.print(f"[yellow]Skipping existing credential '{credential.id}'[/yellow]")
                skipped += 1
                continue
            store.add_credentials(credential, overwrite=overwrite)
    except AWSCredentialsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Imported {len(imported) - skipped} credentials from {casc_file}[/green]")


@credentials_app.command("export-casc")
def export_casc(
    casc_file: Path = typer.Argument(..., help="Configuration-as-code YAML file to write"),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-c", help=CONFIG_HELP, envvar=CONFIG_ENV
    ),
) -> None:
    """Export stored AWS credentials to a configuration-as-code file."""
    _, store = _open_store(config_file)
    try:
        credentials = store.list_credentials()
        dump_casc(credentials, casc_file)
    except AWSCredentialsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Exported {len(credentials)} credentials to {casc_file}[/green]")
