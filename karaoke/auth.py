from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
import hmac
import os
from dotenv import load_dotenv

from .exceptions import AuthenticationError

load_dotenv()

# JWT settings
SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-change-this-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "30"))

security = HTTPBearer(auto_error=False)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Tạo JWT token"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def verify_password(plain_password: str) -> bool:
    """Kiểm tra mật khẩu quản trị"""
    admin_password = os.getenv("ADMIN_PASSWORD", "admin123")
    return hmac.compare_digest(plain_password.encode(), admin_password.encode())

def verify_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> dict:
    """Kiểm tra JWT token"""
    if credentials is None:
        raise AuthenticationError()

    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise AuthenticationError()

    if payload.get("role") != "admin":
        raise AuthenticationError()

    return payload

def get_current_admin(token_data: dict = Depends(verify_token)) -> dict:
    """Lấy quản trị viên hiện tại (dùng trong endpoints)"""
    return token_data
