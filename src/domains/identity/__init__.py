# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Identity domain package: users, roles and batch membership."""

from src.domains.identity.service import IdentityService

__all__ = [
    "IdentityService",
]
