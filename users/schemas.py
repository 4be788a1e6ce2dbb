from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from core.config import get_settings
from core.security import validate_password
from users.phone import PhoneNumber

COUNTRY_CODE_PATTERN = r"^\d{1,3}$"
PHONE_PATTERN = r"^\d{9,10}$"


class PhoneRequest(BaseModel):
    country_code: str = Field(..., pattern=COUNTRY_CODE_PATTERN)
    phone: str = Field(..., pattern=PHONE_PATTERN)

    @property
    def phone_number(self) -> PhoneNumber:
        return PhoneNumber(country_code=self.country_code, phone=self.phone)


class OTPVerify(PhoneRequest):
    code: str

    @field_validator("code")
    @classmethod
    def check_code_format(cls, value: str) -> str:
        length = get_settings().otp_length
        if len(value) != length or not (value.isascii() and value.isdigit()):
            raise ValueError(f"The code must be {length} digits.")
        return value


class PasswordRequest(PhoneRequest):
    password: str = Field(..., max_length=64)

    @field_validator("password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        return validate_password(value)


class LoginRequest(PhoneRequest):
    password: str = Field(..., min_length=8, max_length=64)


class UpdatePasswordRequest(BaseModel):
    old_password: str = Field(..., max_length=64)
    new_password: str = Field(..., max_length=64)

    @field_validator("new_password")
    @classmethod
    def check_password_policy(cls, value: str) -> str:
        return validate_password(value)

    @model_validator(mode="after")
    def check_passwords_differ(self):
        if self.old_password == self.new_password:
            raise ValueError("The new password must be different from the old password.")
        return self


class UpdateProfileRequest(BaseModel):
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    email: EmailStr | None = None


class DeleteAccountRequest(BaseModel):
    password: str


class UserResponse(BaseModel):
    id: int
    first_name: str | None
    last_name: str | None
    phone: str
    country_code: str
    email: str | None
    status: str
    role: str
    is_verified: bool
    verified_at: datetime | None

    class Config:
        from_attributes = True
