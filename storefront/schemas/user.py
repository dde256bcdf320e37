# storefront/schemas/user.py
from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class SignUpRequest(SQLModel):
    """
    Payload for creating a shopper account.

    Validation rules:
      - email must be a valid EmailStr
      - password at least 6 characters (Supabase default)
      - display_name cannot be empty or whitespace
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=6)
    display_name: str = Field(max_length=50)

    @field_validator("display_name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class LoginRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str


class IdentityRead(SQLModel):
    user_id: str
    email: str | None = None
    display_name: str | None = None


class TokenRead(SQLModel):
    """
    Tokens issued by Supabase Auth. Send `access_token` as a Bearer
    token on later requests.
    """

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    user: IdentityRead
