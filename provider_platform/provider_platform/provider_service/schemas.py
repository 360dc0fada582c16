from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from typing import List, Optional
from uuid import UUID


# Providers
class ProviderIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=200)
    document: str = Field(..., min_length=1, max_length=14)


class ProviderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    document: str


# Users
class RegisterUser(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("The passwords do not match")
        return v


class LoginUser(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserClaimOut(BaseModel):
    type: str
    value: str


class UserToken(BaseModel):
    id: str
    email: str
    claims: List[UserClaimOut] = []


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_token: UserToken


class ValidationProblem(BaseModel):
    type: str
    title: str
    status: int
    errors: dict
