# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

Exports:
    RequestContextMiddleware: Binds request and actor ids to log records.
"""

from src.api.middleware.request_context import REQUEST_ID_HEADER, RequestContextMiddleware

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContextMiddleware",
]
