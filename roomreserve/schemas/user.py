from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from roomreserve.utils.validation_helpers import validate_student_id


class UserSignup(BaseModel):
    student_id: str
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=8)

    @field_validator("student_id")
    @classmethod
    def check_student_id(cls, value):
        return validate_student_id(value)


class UserLogin(BaseModel):
    student_id: str
    password: str


class PasswordChange(BaseModel):
    current_password: str = Field(min_length=8)
    new_password: str = Field(min_length=8)


class UserResponse(BaseModel):
    id: str
    student_id: str
    email: str
    first_name: str
    last_name: str
    name: str
    is_admin: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class ForgotPassword(BaseModel):
    email: str


class ResetPassword(BaseModel):
    token: str = Field(min_length=10)
    new_password: str = Field(min_length=8)
