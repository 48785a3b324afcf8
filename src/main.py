# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ASGI entrypoint.

Example:
    uvicorn src.main:app --reload
    lms-core  # console script, binds API_HOST:API_PORT
"""

import uvicorn

from src.api import create_app
from src.core.config import get_settings

app = create_app()


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "src.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.is_development,
        log_config=None,
    )
