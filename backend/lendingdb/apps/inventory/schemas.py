from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from . import models


def _strip_required(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


class ItemBase(BaseModel):
    name: str = Field(..., max_length=255)
    category: str = Field(..., max_length=255)
    stock: int = Field(0, ge=0)
    location: str = Field(..., max_length=255)
    condition: models.ItemConditionEnum = models.ItemConditionEnum.GOOD
    description: Optional[str] = None
    image: Optional[str] = None

    @field_validator("name", "category", "location")
    @classmethod
    def _required_text(cls, value: str) -> str:
        return _strip_required(value)

    @field_validator("description")
    @classmethod
    def _trim_description(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value


class ItemCreate(ItemBase):
    pass


class ItemUpdate(BaseModel):
    """Partial update; fields left out keep their stored value."""

    name: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=255)
    stock: Optional[int] = Field(None, ge=0)
    location: Optional[str] = Field(None, max_length=255)
    condition: Optional[models.ItemConditionEnum] = None
    description: Optional[str] = None
    image: Optional[str] = None

    @field_validator("name", "category", "location")
    @classmethod
    def _required_text(cls, value: Optional[str]) -> str:
        # Only runs for fields present in the body; an explicit null cannot clear a required column.
        if value is None:
            raise ValueError("must not be null")
        return _strip_required(value)

    @field_validator("stock", "condition")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("description")
    @classmethod
    def _trim_description(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value


class ItemRead(ItemBase):
    id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
