#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Session authentication core of the SULABH grievance system.
#
"""
Session authentication core of the SULABH grievance system.
"""

__version__ = "1.0.0"
