from pydantic import BaseModel, ConfigDict, EmailStr, field_validator, constr
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Any, Optional
import re


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class RegisterRequest(CamelModel):
    email: EmailStr
    password: constr(min_length=6, max_length=100)  # type: ignore


class LoginRequest(CamelModel):
    email: EmailStr
    password: constr(min_length=1, max_length=100)  # type: ignore


class UserResponse(CamelModel):
    id: int
    email: str
    role: str
    created_at: datetime


class AuthResponse(CamelModel):
    user: UserResponse
    token: str


class AdminUserResponse(UserResponse):
    api_key_count: int


class ApiKeyResponse(CamelModel):
    id: int
    key: str
    is_active: bool
    created_at: datetime


class ApiKeyOwner(CamelModel):
    id: int
    email: str


class AdminApiKeyResponse(ApiKeyResponse):
    user: ApiKeyOwner


class ApiKeyStatusResponse(CamelModel):
    id: int
    is_active: bool


class AdminApiKeyCreate(CamelModel):
    user_id: int


class SampleReceiptRequest(CamelModel):
    item: constr(min_length=1, max_length=200, strip_whitespace=True)  # type: ignore
    price: constr(pattern=r"^[0-9]+$", max_length=15)  # type: ignore

    @field_validator("item")
    @classmethod
    def sanitize_item(cls, item):
        # Remove any HTML/script tags
        item = re.sub(r"<[^>]+>", "", item).strip()
        if not item:
            raise ValueError("item must not be empty")
        return item


class ReceiptRequest(SampleReceiptRequest):
    recipient_email: EmailStr


class ReceiptResponse(CamelModel):
    email_id: str
    recipient: str


class SampleReceiptResponse(ReceiptResponse):
    sender: str


class LogEntryResponse(CamelModel):
    id: int
    api_key_id: Optional[int]
    api_key: str
    endpoint: str
    status: str
    request_data: Optional[dict[str, Any]]
    response_data: Optional[dict[str, Any]]
    timestamp: datetime
    user_email: Optional[str] = None
