from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class AccountCreate(BaseModel):
    email: str
    password: str


class AccountResponse(BaseModel):
    id: int
    email: str
    session_status: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    id: int


class LoginResponse(BaseModel):
    message: str
    status: str


class AccountStatusResponse(BaseModel):
    session_status: Optional[str] = None
    last_login: Optional[datetime] = None

    model_config = {"from_attributes": True}
