from sqlalchemy import select

from conftest import RecordingSmsProvider
from users import otp
from users.models import Otp
from users.phone import PhoneNumber

PHONE = PhoneNumber(country_code="255", phone="123456789")


def test_generate_code_shape():
    for _ in range(50):
        code = otp.generate_code(4)
        assert len(code) == 4
        assert code.isdigit()
        assert code[0] != "0"


def test_phone_number_formats_for_delivery():
    assert PHONE.e164 == "+255123456789"
    assert PhoneNumber("25", "5123456789") != PhoneNumber("255", "123456789")


async def test_otp_row_survives_failed_sms(db):
    sms = RecordingSmsProvider(succeed=False)

    issued = await otp.issue_otp(db, sms, PHONE)

    stored = (await db.execute(select(Otp))).scalar_one()
    assert stored.id == issued.id
    assert stored.is_expired is False
    assert len(sms.sent) == 1


async def test_message_contains_code(db, sms):
    issued = await otp.issue_otp(db, sms, PHONE)

    number, message = sms.sent[0]
    assert number == "+255123456789"
    assert f"verification code is: {issued.code}." in message


async def test_verify_expires_code(db, sms):
    issued = await otp.issue_otp(db, sms, PHONE)

    assert await otp.verify_otp(db, issued.code, PHONE) is True
    assert await otp.verify_otp(db, issued.code, PHONE) is False


async def test_wrong_code_does_not_verify(db, sms):
    issued = await otp.issue_otp(db, sms, PHONE)
    wrong = "1000" if issued.code != "1000" else "1001"

    assert await otp.verify_otp(db, wrong, PHONE) is False


async def test_resend_reopens_latest_code(db, sms):
    issued = await otp.issue_otp(db, sms, PHONE)
    assert await otp.verify_otp(db, issued.code, PHONE) is True

    assert await otp.resend_otp(db, sms, PHONE) is True

    db.expire_all()
    latest = (await db.execute(select(Otp))).scalar_one()
    assert latest.is_expired is False
    assert await otp.verify_otp(db, latest.code, PHONE) is True


async def test_resend_without_otp_is_noop(db, sms):
    assert await otp.resend_otp(db, sms, PHONE) is False
    assert sms.sent == []
