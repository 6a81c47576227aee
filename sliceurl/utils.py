import random
import secrets
import string
import time
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode
from jose import jwt
from passlib.context import CryptContext
from sliceurl.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BASE36_CHARS = string.digits + string.ascii_lowercase

def to_base36(number: int) -> str:
    """Кодирует неотрицательное целое в base36"""
    if number == 0:
        return BASE36_CHARS[0]

    chars = []
    while number > 0:
        number, remainder = divmod(number, 36)
        chars.append(BASE36_CHARS[remainder])
    return ''.join(reversed(chars))

def generate_unique_string(length: int = settings.SHORT_ID_LENGTH) -> str:
    """Генерирует короткий код из текущего времени в base36 и случайного суффикса"""
    timestamp = to_base36(int(time.time() * 1000))
    random_part = ''.join(random.choice(BASE36_CHARS) for _ in range(2))
    return (timestamp + random_part)[-length:].rjust(length, BASE36_CHARS[0])

def generate_confirmation_token() -> str:
    """Генерирует токен подтверждения аккаунта (64 hex-символа)"""
    return secrets.token_hex(32)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Проверяет соответствие пароля хешу"""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Хеширует пароль"""
    return pwd_context.hash(password)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Создает JWT токен доступа"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt

def decode_access_token(token: str) -> dict:
    """Декодирует JWT токен доступа, бросает JWTError если он недействителен"""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

def build_short_url(code: str) -> str:
    """Создает полный короткий URL с базовым URL приложения"""
    return f"{settings.BASE_URL}/{code}"

def build_confirmation_url(username: str, token: str) -> str:
    """Создает ссылку подтверждения аккаунта"""
    query = urlencode({"username": username, "token": token})
    return f"{settings.BASE_URL}/auth/confirm-account?{query}"

def extract_client_info(request) -> dict:
    """Извлекает информацию о клиенте из запроса"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        ip_address = forwarded_for.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else "unknown"

    return {
        "ip_address": ip_address,
        "user_agent": request.headers.get("user-agent"),
        "timestamp": datetime.now(timezone.utc)
    }
