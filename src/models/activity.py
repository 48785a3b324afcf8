# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Activity history response schema."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.common import ActivityType


class ActivityResponse(BaseModel):
    """A recorded activity."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    module_id: str | None = None
    activity_type: ActivityType
    title: str
    description: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
