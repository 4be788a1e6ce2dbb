import logging
import secrets
from datetime import datetime

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.database import transaction
from sms.base import SmsProvider
from users.models import Otp, User
from users.phone import PhoneNumber

logger = logging.getLogger(__name__)


def generate_code(length: int = None) -> str:
    """Random numeric code of ``length`` digits without a leading zero."""
    length = length or get_settings().otp_length
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


def otp_message(code: str) -> str:
    app_name = get_settings().app_name
    return f"Your {app_name} verification code is: {code}. Do not share this code with anyone."


async def send_otp_sms(sms: SmsProvider, phone: PhoneNumber, code: str):
    result = await run_in_threadpool(sms.send, phone.e164, otp_message(code))
    if not result.success:
        # the OTP row is kept so the user can ask for a resend
        logger.error("Failed to send OTP SMS to %s via %s: %s", phone, result.provider, result.error)
    else:
        logger.info("OTP SMS sent to %s via %s", phone, result.provider)
    return result


async def issue_otp(db: AsyncSession, sms: SmsProvider, phone: PhoneNumber) -> Otp:
    code = generate_code()
    async with transaction(db):
        otp = Otp(country_code=phone.country_code, phone=phone.phone, code=code, is_expired=False)
        db.add(otp)
    logger.info("Generated OTP for %s", phone)
    await send_otp_sms(sms, phone, code)
    return otp


async def resend_otp(db: AsyncSession, sms: SmsProvider, phone: PhoneNumber) -> bool:
    """Give the latest OTP row for this phone a new code; no-op when none exists."""
    result = await db.execute(
        select(Otp)
        .where(Otp.country_code == phone.country_code, Otp.phone == phone.phone)
        .order_by(Otp.created_at.desc(), Otp.id.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    otp = result.scalar_one_or_none()
    if otp is None:
        logger.info("Resend requested for %s but no OTP exists", phone)
        return False

    code = generate_code()
    async with transaction(db):
        otp.code = code
        otp.is_expired = False
    logger.info("Resending OTP for %s", phone)
    await send_otp_sms(sms, phone, code)
    return True


async def verify_otp(db: AsyncSession, code: str, phone: PhoneNumber) -> bool:
    async with transaction(db):
        result = await db.execute(
            update(Otp)
            .where(
                Otp.code == code,
                Otp.country_code == phone.country_code,
                Otp.phone == phone.phone,
                Otp.is_expired.is_(False),
            )
            .values(is_expired=True, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            return False

        await db.execute(
            update(User)
            .where(User.country_code == phone.country_code, User.phone == phone.phone)
            .values(is_verified=True, verified_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
    return True
