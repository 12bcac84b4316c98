"""Account lifecycle shared by the shop owner and site user realms.

Each function works on the account document class it is given, so the two
realms keep separate collections while going through the same rules.
"""
from datetime import datetime, timedelta
import os
import secrets
from typing import Optional, Type

from dotenv import load_dotenv
from fastapi import HTTPException, status

import emails
from auth import hash_password, verify_password
from models import Account
from schemas import SignupRequest

load_dotenv()

CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:5173")
VERIFICATION_TOKEN_TTL = timedelta(hours=24)
RESET_TOKEN_TTL = timedelta(hours=1)


def generate_verification_code() -> str:
    return str(100000 + secrets.randbelow(900000))


async def register_account(model: Type[Account], payload: SignupRequest) -> Account:
    if await model.find_one(model.email == payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")

    code = generate_verification_code()
    account = model(
        email=payload.email,
        name=payload.name,
        password_hash=hash_password(payload.password),
        verification_token=code,
        verification_token_expires_at=datetime.utcnow() + VERIFICATION_TOKEN_TTL,
    )
    await account.insert()
    await emails.send_verification_email(account.email, code)
    return account


async def verify_account(model: Type[Account], code: str, email: Optional[str] = None) -> Account:
    query = {
        "verification_token": code,
        "verification_token_expires_at": {"$gt": datetime.utcnow()},
    }
    if email:
        query["email"] = email

    account = await model.find_one(query)
    if account is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired verification code")

    await account.update({"$set": {
        "is_verified": True,
        "verification_token": None,
        "verification_token_expires_at": None,
        "updated_at": datetime.utcnow(),
    }})

    await emails.send_welcome_email(account.email, account.name)
    return account


async def authenticate_account(model: Type[Account], email: str, password: str) -> Account:
    account = await model.find_one(model.email == email)
    if account is None or not verify_password(password, account.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    await account.update({"$set": {"last_login": datetime.utcnow()}})
    return account


async def request_password_reset(model: Type[Account], email: str) -> Account:
    account = await model.find_one(model.email == email)
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    token = secrets.token_hex(20)
    await account.update({"$set": {
        "reset_password_token": token,
        "reset_password_expires_at": datetime.utcnow() + RESET_TOKEN_TTL,
    }})

    await emails.send_password_reset_email(account.email, f"{CLIENT_URL}/reset-password/{token}")
    return account


async def reset_account_password(model: Type[Account], token: str, password: str) -> Account:
    account = await model.find_one({
        "reset_password_token": token,
        "reset_password_expires_at": {"$gt": datetime.utcnow()},
    })
    if account is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

    await account.update({"$set": {
        "password_hash": hash_password(password),
        "reset_password_token": None,
        "reset_password_expires_at": None,
        "updated_at": datetime.utcnow(),
    }})

    await emails.send_reset_success_email(account.email)
    return account


async def load_account(model: Type[Account], account_id) -> Account:
    account = await model.get(account_id)
    if account is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return account


async def change_account_password(account: Account, current_password: str, new_password: str) -> Account:
    if not verify_password(current_password, account.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    if verify_password(new_password, account.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="New password must be different from the current password")

    await account.update({"$set": {"password_hash": hash_password(new_password), "updated_at": datetime.utcnow()}})
    return account


async def update_account_profile(model: Type[Account], account: Account, name: str, email: str) -> Account:
    taken = await model.find_one({"email": email, "_id": {"$ne": account.id}})
    if taken is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already taken")

    await account.update({"$set": {"name": name, "email": email, "updated_at": datetime.utcnow()}})
    return account
