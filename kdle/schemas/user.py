from typing import Annotated, Optional
from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    username: Optional[str] = None
    profile_created: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    username: Annotated[str, Field(
        min_length=3,
        max_length=20,
        pattern=r"^[a-zA-Z0-9_]+$",
        description="Letters, numbers and underscores only.",
        examples=["bias_wrecker"],
    )]


class ProfileUpdateResponse(BaseModel):
    success: bool = True
    username: str


class AccountDeletedResponse(BaseModel):
    success: bool = True
    message: str = "Account deleted successfully"
