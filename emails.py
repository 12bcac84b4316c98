"""Transactional mail: verification codes, welcome and password reset notices.

Without ``SMTP_HOST`` the messages are not sent anywhere; they are logged and
kept in ``outbox`` so a developer (or a test) can read the codes. The outbox
only holds the most recent ``MAIL_OUTBOX_SIZE`` messages.
"""
from collections import deque
from email.message import EmailMessage
import logging
import os
import smtplib
from typing import Deque

from dotenv import load_dotenv
from starlette.concurrency import run_in_threadpool

load_dotenv()

logger = logging.getLogger(__name__)

SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
MAIL_FROM = os.getenv("MAIL_FROM", "Places Guide <no-reply@places.local>")

OUTBOX_SIZE = int(os.getenv("MAIL_OUTBOX_SIZE", 50))

outbox: Deque[EmailMessage] = deque(maxlen=OUTBOX_SIZE)


def _deliver(message: EmailMessage) -> None:
    with smtplib.SMTP(SMTP_HOST, SMTP_PORT) as smtp:
        smtp.starttls()
        if SMTP_USER:
            smtp.login(SMTP_USER, SMTP_PASSWORD)
        smtp.send_message(message)


async def send_email(to: str, subject: str, html: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = MAIL_FROM
    message["To"] = to
    message["Subject"] = subject
    message.set_content(html, subtype="html")

    if SMTP_HOST:
        await run_in_threadpool(_deliver, message)
        logger.info("Sent '%s' to %s", subject, to)
    else:
        outbox.append(message)
        logger.info("SMTP not configured, kept '%s' for %s in the outbox", subject, to)
    return message


async def send_verification_email(email: str, code: str):
    return await send_email(email, "Verify your email", f"<p>Your verification code is <b>{code}</b></p>")


async def send_welcome_email(email: str, name: str):
    return await send_email(
        email, "Welcome to Places Guide!",
        f"<p>Welcome, {name}!</p><p>Your account is now verified.</p>",
    )


async def send_password_reset_email(email: str, reset_url: str):
    return await send_email(
        email, "Reset your password",
        f'<p>Reset your password here: <a href="{reset_url}">{reset_url}</a></p>',
    )


async def send_reset_success_email(email: str):
    return await send_email(email, "Password Reset Successful", "<p>Your password has been reset successfully.</p>")
