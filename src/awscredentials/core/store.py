# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""
YAML backed credentials store.

The store keeps AWS credentials in a single YAML file readable only by its
owner. It also reads and writes the configuration-as-code layout used by
``credentials.system.domainCredentials`` files.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from awscredentials.core.exceptions import CredentialsStoreError
from awscredentials.core.models import AWSCredentials

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class CredentialsStore:
    """Credentials kept in a YAML file."""

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Path of the YAML file; it is created on first save
        """
        self.path = path
        self._credentials: Optional[Dict[str, AWSCredentials]] = None

    def _load(self) -> Dict[str, AWSCredentials]:
        if self._credentials is not None:
            return self._credentials

        credentials: Dict[str, AWSCredentials] = {}
        if not self.path.exists():
            logger.debug(f"Credentials store not found: {self.path}")
            self._credentials = credentials
            return credentials

        try:
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise CredentialsStoreError(f"Failed to read credentials store {self.path}: {e}") from e

        entries = data.get("credentials", []) if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise CredentialsStoreError(f"Credentials store {self.path} has no 'credentials' list")

        for entry in entries:
            if entry is None:
                continue
            try:
                credential = AWSCredentials.from_dict(entry)
            except (ValueError, TypeError) as e:
                logger.warning(f"Skipping malformed credential entry in {self.path}: {e}")
                continue
            credentials[credential.id] = credential

        logger.debug(f"Loaded {len(credentials)} credentials from {self.path}")
        self._credentials = credentials
        return credentials

    def list_credentials(self) -> List[AWSCredentials]:
        """List all stored credentials, sorted by id."""
        return sorted(self._load().values(), key=lambda c: c.id)

    def get_credentials(self, credentials_id: Optional[str]) -> Optional[AWSCredentials]:
        """Get a credential by id; a blank id matches nothing."""
        if _is_blank(credentials_id):
            return None
        return self._load().get(credentials_id)  # type: ignore[arg-type]

    def credential_exists(self, credentials_id: str) -> bool:
        return self.get_credentials(credentials_id) is not None

    def add_credentials(self, credential: AWSCredentials, overwrite: bool = False) -> None:
        """Add a credential and save the store.

        Raises:
            CredentialsStoreError: If the id is blank or already taken and overwrite is False
        """
        if _is_blank(credential.id):
            raise CredentialsStoreError("Credential id must not be blank")

        credentials = self._load()
        if credential.id in credentials and not overwrite:
            raise CredentialsStoreError(f"Credential '{credential.id}' already exists")

        credentials[credential.id] = credential
        self.save()
        logger.info(f"Stored credential {credential.id}")

    def remove_credentials(self, credentials_id: str) -> bool:
        """Remove a credential. Returns False if it did not exist."""
        credentials = self._load()
        if credentials_id not in credentials:
            return False
        del credentials[credentials_id]
        self.save()
        logger.info(f"Removed credential {credentials_id}")
        return True

    def save(self) -> None:
        """Write the store with owner-only permissions."""
        data: Dict[str, Any] = {
            "updated": datetime.now().isoformat(),
            "credentials": [c.to_dict() for c in self.list_credentials()],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
            os.chmod(self.path, 0o600)
        except OSError as e:
            raise CredentialsStoreError(f"Failed to write credentials store {self.path}: {e}") from e


def load_casc(path: Path) -> List[AWSCredentials]:
    """
    Read AWS credentials from a configuration-as-code YAML file.

    Expected layout::

        credentials:
          system:
            domainCredentials:
              - credentials:
                  - aws:
                      id: ...
                      accessKey: ...

    Args:
        path: Path to the YAML file

    Returns:
        AWS credentials found in all domains; entries of other types are ignored
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise CredentialsStoreError(f"Failed to read {path}: {e}") from e

    try:
        domains = data["credentials"]["system"]["domainCredentials"] or []
    except (KeyError, TypeError) as e:
        raise CredentialsStoreError(
            f"{path} has no credentials.system.domainCredentials section"
        ) from e

    if not isinstance(domains, list):
        raise CredentialsStoreError(f"{path} domainCredentials must be a list")

    found: List[AWSCredentials] = []
    for domain in domains:
        if not isinstance(domain, dict):
            logger.warning(f"Skipping malformed domain entry in {path}")
            continue
        for entry in domain.get("credentials") or []:
            if not isinstance(entry, dict) or "aws" not in entry:
                continue
            try:
                found.append(AWSCredentials.from_dict(entry["aws"]))
            except (ValueError, TypeError) as e:
                logger.warning(f"Skipping malformed aws entry in {path}: {e}")

    logger.info(f"Read {len(found)} AWS credentials from {path}")
    return found


def dump_casc(credentials: List[AWSCredentials], path: Path) -> None:
    """Write credentials in the configuration-as-code layout read by :func:`load_casc`."""
    data = {
        "credentials": {
            "system": {
                "domainCredentials": [
                    {"credentials": [{"aws": c.to_dict()} for c in credentials]}
                ]
            }
        }
    }
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise CredentialsStoreError(f"Failed to write {path}: {e}") from e
