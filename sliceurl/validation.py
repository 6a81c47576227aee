"""Проверка пользовательского ввода.

Функции возвращают ``(is_valid, message)``: сервисы сами решают, какую ошибку
поднять, а сообщение уходит клиенту как есть.
"""
import re
from typing import Optional, Tuple
from urllib.parse import urlparse

import validators

ALIAS_PATTERN = re.compile(r"^[a-z0-9]{3,10}$")
USERNAME_PATTERN = re.compile(r"^[a-z][a-z0-9-]*$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PASSWORD_LENGTH = 6
MIN_FULL_NAME_LENGTH = 4

ValidationResult = Tuple[bool, Optional[str]]


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_url(url: Optional[str]) -> ValidationResult:
    if is_blank(url):
        return False, "Original Url is required"

    parsed = urlparse(url)
    if parsed.scheme and parsed.netloc and parsed.scheme.lower() not in ("http", "https"):
        return False, "URL must start with http:// or https://"

    if not validators.url(url, simple_host=True) or parsed.scheme.lower() not in ("http", "https"):
        return False, "Invalid URL format"

    return True, None


def is_valid_alias(alias: Optional[str]) -> bool:
    if is_blank(alias):
        return False
    return ALIAS_PATTERN.fullmatch(alias) is not None


def is_valid_email(email: Optional[str]) -> bool:
    if is_blank(email):
        return False
    return EMAIL_PATTERN.fullmatch(email.strip()) is not None


def is_valid_password(password: Optional[str]) -> bool:
    if password is None:
        return False
    return len(password.strip()) >= MIN_PASSWORD_LENGTH


def is_valid_username(username: Optional[str]) -> bool:
    if is_blank(username):
        return False
    return USERNAME_PATTERN.fullmatch(username.lower()) is not None


def is_valid_full_name(full_name: Optional[str]) -> bool:
    return full_name is not None and len(full_name) >= MIN_FULL_NAME_LENGTH


def validate_registration(email, password, username, full_name) -> ValidationResult:
    if any(is_blank(value) for value in (email, password, username, full_name)):
        return False, "All fields are required"

    if not is_valid_email(email):
        return False, "Invalid email format"

    if not is_valid_password(password):
        return False, "Password must be at least 6 characters long"

    if not is_valid_username(username):
        return False, "Username must start with a letter and contain only lowercase letters, numbers and hyphens"

    if not is_valid_full_name(full_name):
        return False, "Full name must be at least 4 characters long"

    return True, None


def validate_login(email, password) -> ValidationResult:
    if is_blank(email) or is_blank(password):
        return False, "Email & password are required"

    if not is_valid_email(email):
        return False, "Invalid email format"

    if not is_valid_password(password):
        return False, "Password must be at least 6 characters long"

    return True, None
