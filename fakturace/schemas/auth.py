from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class RegisterRequest(BaseModel):
    # Fields are loosely typed: the anti-bot checks run before validation.
    name: str | None = None
    contact_email: str | None = None
    password: str | None = None
    password_confirm: str | None = None
    company_id: str | None = None
    my_name: str | None = None  # honeypot, must stay empty
    math_num1: int | str | None = None
    math_num2: int | str | None = None
    math_answer: int | str | None = None


class LoginRequest(BaseModel):
    contact_email: str | None = None
    password: str | None = None


class EmailRequest(BaseModel):
    contact_email: str | None = None


class ResetPasswordRequest(BaseModel):
    token: str | None = None
    password: str | None = None
    password_confirm: str | None = None


class UserResponse(BaseModel):
    id: UUID | None
    name: str
    contact_email: str
    role: str = "user"
    activated_at: datetime | None = None

    model_config = {"from_attributes": True}


class RegisterResponse(BaseModel):
    user: UserResponse
    email_sent: bool


class LoginResponse(BaseModel):
    user: UserResponse
    token: str
