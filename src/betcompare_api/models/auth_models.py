"""Models for the admin login endpoints."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)


class AdminUser(BaseModel):
    email: str
    role: str = "admin"
