from datetime import datetime, timedelta
from jose import jwt, JWTError
from passlib.context import CryptContext
from fastapi.security import OAuth2PasswordBearer
from fastapi import Depends, HTTPException, status
from beanie import PydanticObjectId
from pydantic import BaseModel
from typing import Optional
import os
from dotenv import load_dotenv


load_dotenv()

#  SECURITY CONFIGURATION

SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)
oauth2_schemas = OAuth2PasswordBearer(tokenUrl="/api/siteuser/login")

# SECURITY LOGIC

def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Compare a plain password with its stored hash."""
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Create the JWT."""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta

    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "iat": datetime.utcnow()})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


class TokenIdentity(BaseModel):
    """Claims of a verified site-user bearer token."""
    id: PydanticObjectId
    email: str
    is_verified: bool = False

    def current_principal_id(self) -> PydanticObjectId:
        return self.id


def issue_site_user_token(user) -> str:
    return create_access_token({"sub": str(user.id), "email": user.email, "verified": user.is_verified})

# DEPENDENCY
async def get_current_site_user(token: str = Depends(oauth2_schemas)) -> TokenIdentity:
    """Verify the bearer token and return its claims; the store is never touched."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid credentials or expired token",
        headers={"WWW-Authenticate": "Bearer"}
    )

    try:
        # DECODE AND VERIFY THE TOKEN SIGNATURE
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        email = payload.get("email")

        if user_id is None or email is None:
            raise credentials_exception

        return TokenIdentity(id=user_id, email=email, is_verified=bool(payload.get("verified")))

    except (JWTError, ValueError):
        raise credentials_exception
