from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True)

# Тела запросов: поля необязательные, проверку и сообщения об ошибках делают сервисы

class UserRegister(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    username: Optional[str] = None
    full_name: Optional[str] = None

class UserLogin(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None

class SocialAuthRequest(CamelModel):
    access_token: Optional[str] = None

class PasswordChange(CamelModel):
    old_password: Optional[str] = None
    new_password: Optional[str] = None

class AccountUpdate(CamelModel):
    username: Optional[str] = None
    full_name: Optional[str] = None

class LinkCreate(CamelModel):
    original_url: Optional[str] = Field(None, description="Оригинальный URL для сокращения")

# Ответы

class UserResponse(CamelModel):
    id: int
    email: str
    username: str
    full_name: str
    auth_type: str
    is_account_confirmed: bool
    created_at: Optional[datetime] = None

class LoginResponse(UserResponse):
    access_token: str

class ClickInfo(CamelModel):
    time: datetime
    user_agent: Optional[str] = None
    source: str

class LinkResponse(CamelModel):
    short_id: str
    alias: str = ""
    original_url: str
    short_url: str
    creator: str
    clicks: int
    clicked_at: List[ClickInfo] = []
    created_at: Optional[datetime] = None

    @field_validator('alias', mode='before')
    def empty_alias(cls, v):
        return v or ""
