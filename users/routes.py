from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from sms.base import SmsProvider
from sms.registry import get_sms_provider
from users import schemas, services
from users.dependencies import get_current_user
from users.models import User

router = APIRouter(tags=["Users"])


def success(data=None, message: str = ""):
    return {"status": "success", "message": message, "data": data if data is not None else {}}


def user_payload(user: User) -> dict:
    return schemas.UserResponse.model_validate(user).model_dump()


# ==========================================================
# ✅ REGISTRATION
# ==========================================================
@router.post("/register/step/one", status_code=201)
async def register_step_one(
    request: schemas.PhoneRequest,
    db: AsyncSession = Depends(get_db),
    sms: SmsProvider = Depends(get_sms_provider),
):
    _, message = await services.start_registration(db, sms, request.phone_number)
    return success(message=message)


@router.post("/register/resend-otp", status_code=201)
async def resend_otp(
    request: schemas.PhoneRequest,
    db: AsyncSession = Depends(get_db),
    sms: SmsProvider = Depends(get_sms_provider),
):
    await services.resend_otp(db, sms, request.phone_number)
    return success(message=f"OTP sent to {request.phone_number.e164} successfully")


@router.post("/register/verify-otp")
async def verify_otp(request: schemas.OTPVerify, db: AsyncSession = Depends(get_db)):
    await services.verify_otp(db, request.code, request.phone_number)
    return success({"verified": True}, "OTP verified successfully")


@router.post("/register/step/two", status_code=201)
async def register_step_two(request: schemas.PasswordRequest, db: AsyncSession = Depends(get_db)):
    user, token = await services.complete_registration(db, request.phone_number, request.password)
    return success({"user": user_payload(user), "token": token}, "Registration successful")


# ==========================================================
# ✅ LOGIN / LOGOUT
# ==========================================================
@router.post("/login")
async def login(request: schemas.LoginRequest, db: AsyncSession = Depends(get_db)):
    user, token = await services.login(db, request.phone_number, request.password)
    return success({"user": user_payload(user), "token": token}, "Login successful")


@router.post("/logout")
async def logout(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await services.logout(db, user)
    return success(message="Logout successful")


# ==========================================================
# ✅ PASSWORD RESET
# ==========================================================
@router.post("/forgot-password")
async def forgot_password(
    request: schemas.PhoneRequest,
    db: AsyncSession = Depends(get_db),
    sms: SmsProvider = Depends(get_sms_provider),
):
    await services.forgot_password(db, sms, request.phone_number)
    return success(message="OTP sent successfully for password reset")


@router.post("/verify-reset-otp")
async def verify_reset_otp(request: schemas.OTPVerify, db: AsyncSession = Depends(get_db)):
    await services.verify_reset_otp(db, request.code, request.phone_number)
    return success({"verified": True}, "OTP verified successfully")


@router.post("/reset-password")
async def reset_password(request: schemas.PasswordRequest, db: AsyncSession = Depends(get_db)):
    await services.reset_password(db, request.phone_number, request.password)
    return success(message="Password reset successfully")


# ==========================================================
# ✅ ACCOUNT
# ==========================================================
@router.get("/users")
async def all_users(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    users = await services.list_users(db)
    return success({"users": [user_payload(u) for u in users]})


@router.get("/users/me")
async def me(user: User = Depends(get_current_user)):
    return success({"user": user_payload(user)})


@router.patch("/update-profile")
async def update_profile(
    request: schemas.UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await services.update_profile(db, user, request.model_dump(exclude_unset=True))
    return success({"user": user_payload(user)}, "Profile updated successfully")


@router.patch("/update-password")
async def update_password(
    request: schemas.UpdatePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await services.update_password(db, user, request.old_password, request.new_password)
    return success(message="Password updated successfully")


@router.delete("/delete-account")
async def delete_account(
    request: schemas.DeleteAccountRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await services.delete_account(db, user, request.password)
    return success(message="Account deleted successfully")
