from pydantic import BaseModel, Field


class PasswordLoginRequest(BaseModel):
    password: str = Field(min_length=1, max_length=128)


class LoginResult(BaseModel):
    success: bool = True
    session_type: str


class SessionCheck(BaseModel):
    authenticated: bool
    session_type: str | None = None
