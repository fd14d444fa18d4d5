# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""Command modules for awscredentials."""

from awscredentials.commands.credentials import credentials_app

__all__ = ["credentials_app"]
