"""Pydantic schemas used across the HTTP surface."""
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

CollectionPayload = Union[list[Any], dict[str, Any]]


class HealthResponse(BaseModel):
    status: str
    database: str
    timestamp: datetime


class BootstrapResponse(BaseModel):
    data: dict[str, CollectionPayload]


class CollectionResponse(BaseModel):
    data: CollectionPayload


class CollectionWrite(BaseModel):
    data: CollectionPayload = Field(..., description="完整的集合内容，整体替换")


class ImportRequest(BaseModel):
    collections: dict[str, Any]


class SuccessResponse(BaseModel):
    ok: bool = True


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


class UserInfo(BaseModel):
    id: str
    username: str
    role: str
    name: str = ""
    email: str = ""


class LoginResponse(BaseModel):
    token: str
    user: UserInfo


class TokenData(BaseModel):
    account_id: str
    username: str
    role: str


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None
