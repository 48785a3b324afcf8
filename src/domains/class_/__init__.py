# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class domain package.

This package provides class management functionality including:
- Class CRUD operations
- Class activation/deactivation
"""

from src.domains.class_.service import ClassService

__all__ = [
    "ClassService",
]
