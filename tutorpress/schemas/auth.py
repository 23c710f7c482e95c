from pydantic import BaseModel, Field


class TokenRequest(BaseModel):
    """Schema for token request; username may be the login or the email"""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Schema for token response"""
    access_token: str
    token_type: str = "bearer"
    user_id: int
