# SPDX-License-Identifier: Apache-2.0
# SPDX-FileCopyrightText: 2025 The Linux Foundation

"""awscredentials: AWS credentials store and environment binding."""

__version__ = "0.1.0"
__author__ = "LF Release Engineering"
__email__ = "releng@linuxfoundation.org"

from awscredentials.core.models import AWSCredentials, SessionCredentials

__all__ = ["AWSCredentials", "SessionCredentials"]
