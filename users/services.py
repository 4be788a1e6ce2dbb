"""
Registration and authentication flows.

A phone number moves NEW -> OTP_PENDING (user row, no password)
-> active (password set) and may later be suspended. The password reset
branch is only open to users that already have a password.

Verifying an OTP and setting the password are separate calls; the client
sequences them.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.database import transaction
from core.errors import BadRequest, Conflict, NotFound, Unauthorized, ValidationError
from core.security import hash_password, verify_password
from sales import crud as sales_crud
from sms.base import SmsProvider
from users import crud, otp
from users.models import User
from users.phone import PhoneNumber
from users.tokens import issue_token, revoke_tokens

logger = logging.getLogger(__name__)

ALREADY_REGISTERED = (
    'This phone number is already registered. Please use "Forgot Password" '
    "to reset your password instead of creating a new account."
)
ALREADY_HAS_PASSWORD = (
    'This phone number is already registered with a password. Please use "Forgot Password" '
    "to reset your password or login directly."
)
INCOMPLETE_REGISTRATION = (
    "Your registration is incomplete. Please complete your registration "
    "instead of resetting password."
)


# ==========================================================
# ✅ REGISTRATION
# ==========================================================
async def start_registration(db: AsyncSession, sms: SmsProvider, phone: PhoneNumber):
    """Claim the phone number and send an OTP. Returns (user, message)."""
    async with transaction(db):
        purged = await crud.delete_incomplete_registrations(db, get_settings().incomplete_registration_ttl_hours)
    if purged:
        logger.info("Purged %d stale incomplete registrations", purged)

    user = await crud.get_user_by_phone(db, phone)
    if user is not None and user.has_password:
        raise Conflict(ALREADY_REGISTERED)

    if user is not None:
        message = f"OTP sent to {phone.e164} successfully. Continuing previous registration."
        logger.info("Continuing incomplete registration for %s", phone)
    else:
        async with transaction(db):
            user = crud.create_user(db, phone)
        message = f"OTP sent to {phone.e164} successfully"
        logger.info("Started registration for %s (user %s)", phone, user.id)

    await otp.issue_otp(db, sms, phone)
    return user, message


async def resend_otp(db: AsyncSession, sms: SmsProvider, phone: PhoneNumber) -> bool:
    return await otp.resend_otp(db, sms, phone)


async def verify_otp(db: AsyncSession, code: str, phone: PhoneNumber) -> bool:
    if not await otp.verify_otp(db, code, phone):
        raise Unauthorized("Incorrect OTP entered")
    logger.info("OTP verified for %s", phone)
    return True


async def complete_registration(db: AsyncSession, phone: PhoneNumber, password: str):
    """Set the first password and activate the account. Returns (user, token)."""
    user = await crud.get_user_by_phone(db, phone)
    if user is None:
        raise NotFound("User not found")
    if user.has_password:
        raise Conflict(ALREADY_HAS_PASSWORD)
    if user.status in ("active", "suspended"):
        raise Unauthorized("An error occurred. Please try again")

    async with transaction(db):
        user.password = hash_password(password)
        user.status = "active"
        user.updated_at = datetime.utcnow()
        token = await issue_token(db, user)

    logger.info("Registration completed for user %s", user.id)
    return user, token


# ==========================================================
# ✅ AUTHENTICATION
# ==========================================================
async def login(db: AsyncSession, phone: PhoneNumber, password: str):
    user = await crud.get_user_by_phone(db, phone)
    if user is None or not verify_password(password, user.password):
        raise Unauthorized("Invalid credentials")

    async with transaction(db):
        token = await issue_token(db, user)
    logger.info("User %s logged in", user.id)
    return user, token


async def logout(db: AsyncSession, user: User) -> int:
    async with transaction(db):
        revoked = await revoke_tokens(db, user)
    logger.info("User %s logged out, %d tokens revoked", user.id, revoked)
    return revoked


# ==========================================================
# ✅ PASSWORD RESET
# ==========================================================
async def _get_user_with_password(db: AsyncSession, phone: PhoneNumber) -> User:
    user = await crud.get_user_by_phone(db, phone)
    if user is None:
        raise NotFound("User not found")
    if not user.has_password:
        raise BadRequest(INCOMPLETE_REGISTRATION)
    return user


async def forgot_password(db: AsyncSession, sms: SmsProvider, phone: PhoneNumber):
    user = await _get_user_with_password(db, phone)
    await otp.issue_otp(db, sms, phone)
    logger.info("Password reset OTP issued for user %s", user.id)
    return user


async def verify_reset_otp(db: AsyncSession, code: str, phone: PhoneNumber) -> bool:
    return await verify_otp(db, code, phone)


async def reset_password(db: AsyncSession, phone: PhoneNumber, password: str) -> User:
    user = await _get_user_with_password(db, phone)
    async with transaction(db):
        user.password = hash_password(password)
        user.updated_at = datetime.utcnow()
        revoked = await revoke_tokens(db, user)
    logger.info("Password reset for user %s, %d tokens revoked", user.id, revoked)
    return user


# ==========================================================
# ✅ ACCOUNT
# ==========================================================
async def update_password(db: AsyncSession, user: User, old_password: str, new_password: str) -> User:
    if not verify_password(old_password, user.password):
        raise Unauthorized("Current password is incorrect")
    async with transaction(db):
        user.password = hash_password(new_password)
        user.updated_at = datetime.utcnow()
    return user


async def update_profile(db: AsyncSession, user: User, data: dict) -> User:
    email = data.get("email")
    if email is not None:
        owner = await crud.get_user_by_email(db, email)
        if owner is not None and owner.id != user.id:
            raise ValidationError({"email": ["The email has already been taken."]})

    async with transaction(db):
        for field, value in data.items():
            setattr(user, field, value)
        user.updated_at = datetime.utcnow()
    return user


async def delete_account(db: AsyncSession, user: User, password: str):
    if not verify_password(password, user.password):
        raise Unauthorized("Invalid credentials")
    async with transaction(db):
        await revoke_tokens(db, user)
        # businesses cascade from users, sales do not
        await sales_crud.delete_owner_sales(db, user.id)
        await db.delete(user)
    logger.info("User %s deleted their account", user.id)


async def list_users(db: AsyncSession):
    return await crud.get_all_users(db)
