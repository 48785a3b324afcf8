# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Class request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ClassCreateRequest(BaseModel):
    """Request to create a class."""

    name: str = Field(min_length=1, max_length=100)
    section: str | None = Field(default=None, max_length=20)
    description: str | None = None


class ClassUpdateRequest(BaseModel):
    """Partial class update; unset fields are left untouched."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    section: str | None = Field(default=None, max_length=20)
    description: str | None = None


class ClassResponse(BaseModel):
    """Class details."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    section: str | None = None
    description: str | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
