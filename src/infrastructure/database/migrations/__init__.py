# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Alembic environment and revision scripts for the LMS schema. Revisions
live in ``versions/``; run them with ``alembic upgrade head`` from the
repository root.
"""
