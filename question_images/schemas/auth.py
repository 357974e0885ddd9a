"""Pydantic schemas for account registration and login."""
from pydantic import BaseModel


class CredentialsSchema(BaseModel):
    email: str
    password: str


class TokenSchema(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
