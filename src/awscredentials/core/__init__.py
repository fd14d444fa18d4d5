# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Core modules for awscredentials."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from awscredentials.core.aws_credentials import CredentialsResolver
    from awscredentials.core.store import CredentialsStore

__all__ = ["CredentialsResolver", "CredentialsStore"]


def __getattr__(name: str) -> Any:
    """Lazy import for core modules."""
    if name == "CredentialsResolver":
        from awscredentials.core.aws_credentials import CredentialsResolver
        return CredentialsResolver
    elif name == "CredentialsStore":
        from awscredentials.core.store import CredentialsStore
        return CredentialsStore
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
