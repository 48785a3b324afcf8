# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.models.common import UserRole


class UserCreateRequest(BaseModel):
    """Request to create a user."""

    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    role: UserRole
    symbol_no: str | None = Field(default=None, max_length=50)
    batch_id: str | None = None


class AssignBatchRequest(BaseModel):
    """Request to move a student into a batch."""

    batch_id: str


class UserStatusRequest(BaseModel):
    """Request to activate or deactivate a user."""

    is_active: bool


class UserResponse(BaseModel):
    """User details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    symbol_no: str | None = None
    role: UserRole
    is_active: bool
    batch_id: str | None = None
    created_at: datetime | None = None
