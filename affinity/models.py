from datetime import datetime
from enum import Enum
from typing import List

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActionEnum(str, Enum):
    LIKE = "like"
    COMMENT = "comment"
    VIEW = "view"


class AgeOffConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    maxDays: int = Field(180, gt=0)
    exponent: float = 3
    easing: float = 2


class ActivityEvent(BaseModel):
    user: str
    item: str
    itemType: str
    action: str
    dateCreated: datetime

    @field_validator("user", "item", mode="before")
    @classmethod
    def _object_id_to_str(cls, value):
        if isinstance(value, ObjectId):
            return str(value)
        return value


class ItemWeight(BaseModel):
    item: str
    itemType: str
    weight: float = 0.0


class UserItemWeights(BaseModel):
    user: str
    itemWeights: List[ItemWeight] = Field(default_factory=list)
    rowWeight: float = 0.0


class ActivityIn(BaseModel):
    user: str
    item: str
    itemType: str
    action: str


class ActivityRemove(BaseModel):
    user: str
    item: str
    action: str


class RemoveOut(BaseModel):
    deleted: int


class RecomputeOut(BaseModel):
    status: str
    users: int
