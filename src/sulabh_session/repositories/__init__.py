#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Account persistence backends.
#
"""
Account persistence backends.
"""

from .account_repository import AccountRepository, DuplicateAccountError, InMemoryAccountRepository

__all__ = [
    'AccountRepository',
    'DuplicateAccountError',
    'InMemoryAccountRepository',
]
