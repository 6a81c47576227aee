"""Регистрация, подтверждение и вход пользователей.

Аккаунт с паролем создается неподтвержденным и становится подтвержденным
только по токену из письма. Аккаунты социального входа создаются сразу
подтвержденными и без пароля.

Сообщения об ошибках подтверждения и входа не различают "пользователь не
найден" и "неверный токен/пароль".
"""
import logging
import secrets
import time
from typing import Optional, Tuple

from sliceurl.errors import (
    ConflictError, DuplicateKeyError, ForbiddenError, InternalError,
    InvalidInputError, NotFoundError, UnauthorizedError
)
from sliceurl.mailer import Mailer, account_confirmation_template
from sliceurl.models import AUTH_TYPE_PASSWORD, SOCIAL_AUTH_TYPES, User
from sliceurl.social import IdentityVerificationError, IdentityVerifier, get_sign_in_provider
from sliceurl.stores import AccountStore
from sliceurl.utils import (
    build_confirmation_url, create_access_token, generate_confirmation_token,
    get_password_hash, verify_password
)
from sliceurl.validation import (
    is_blank, is_valid_full_name, is_valid_password, is_valid_username,
    validate_login, validate_registration
)

logger = logging.getLogger(__name__)

BROKEN_CONFIRMATION_MESSAGE = "Oops! You might have clicked on a broken URL"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
MIN_SOCIAL_TOKEN_LENGTH = 1000


def issue_access_token(user: User) -> str:
    return create_access_token({"userId": str(user.id), "email": user.email})


class IdentityManager:
    def __init__(self, store: AccountStore, mailer: Optional[Mailer] = None, verifier: Optional[IdentityVerifier] = None):
        self.store = store
        self.mailer = mailer
        self.verifier = verifier

    def register(self, email: str, password: str, username: str, full_name: str) -> User:
        username = username.lower() if username else username

        is_valid, message = validate_registration(email, password, username, full_name)
        if not is_valid:
            raise InvalidInputError(message)

        email = email.strip()
        if self.store.get_by_email_or_username(email, username):
            raise ConflictError("Email or username already exists")

        token = generate_confirmation_token()
        html = account_confirmation_template(full_name, build_confirmation_url(username, token))
        if not self.mailer.send(email, "Slice Url - Account Confirmation", html):
            raise InternalError("Failed to send the account confirmation email")

        user = User(
            email=email,
            username=username,
            full_name=full_name,
            password_hash=get_password_hash(password),
            auth_type=AUTH_TYPE_PASSWORD,
            is_account_confirmed=False,
            account_confirmation_token=token
        )
        try:
            user = self.store.insert(user)
        except DuplicateKeyError:
            raise ConflictError("Email or username already exists")

        logger.info("Registered user %s", user.username)
        return user

    def confirm_account(self, username: Optional[str], token: Optional[str]) -> User:
        if not is_valid_username(username) or is_blank(token):
            raise InvalidInputError(BROKEN_CONFIRMATION_MESSAGE)

        user = self.store.get_by_username(username.strip().lower())
        if not user or not user.account_confirmation_token:
            raise InvalidInputError(BROKEN_CONFIRMATION_MESSAGE)

        # compare_digest не принимает str с не-ASCII символами
        if not secrets.compare_digest(token.encode(), user.account_confirmation_token.encode()):
            raise InvalidInputError(BROKEN_CONFIRMATION_MESSAGE)

        user.is_account_confirmed = True
        user.account_confirmation_token = ""
        self.store.save(user)
        logger.info("Confirmed account %s", user.username)
        return user

    def login(self, email: str, password: str) -> Tuple[User, str]:
        is_valid, message = validate_login(email, password)
        if not is_valid:
            raise InvalidInputError(message)

        user = self.store.get_by_email(email.strip())
        if not user or not verify_password(password, user.password_hash):
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

        if not user.is_account_confirmed:
            raise ForbiddenError(
                "Your account is not confirmed. To log in, you must confirm your account. "
                "Please check your email inbox."
            )

        return user, issue_access_token(user)

    def social_auth(self, access_token: Optional[str]) -> Tuple[User, str, str]:
        if is_blank(access_token) or len(access_token.strip()) < MIN_SOCIAL_TOKEN_LENGTH:
            raise InvalidInputError("Invalid access token. Please provide a valid access token.")

        try:
            claims = self.verifier.verify(access_token.strip())
        except IdentityVerificationError as e:
            logger.warning("Social token verification failed: %s", e)
            raise InvalidInputError("Invalid token")

        auth_type = get_sign_in_provider(claims)
        if auth_type not in SOCIAL_AUTH_TYPES:
            raise InvalidInputError(f"Unsupported sign-in provider: {auth_type or 'unknown'}")

        email = claims["email"]
        user = self.store.get_by_email(email)

        if user and not user.is_social:
            raise ConflictError(
                "Your email is associated with an account. Please login with your email & password"
            )

        if user and user.auth_type != auth_type:
            raise ConflictError(f"You have already an account. Try to login with {user.auth_type}")

        if not user:
            full_name = claims.get("name") or email.split("@")[0]
            user = User(
                email=email,
                username=full_name.lower().replace(" ", "") + str(int(time.time() * 1000)),
                full_name=full_name,
                password_hash="",
                auth_type=auth_type,
                is_account_confirmed=True,
                account_confirmation_token=""
            )
            try:
                user = self.store.insert(user)
            except DuplicateKeyError:
                raise ConflictError("Email or username already exists")
            logger.info("Created %s account for %s", auth_type, email)

        return user, issue_access_token(user), auth_type

    def change_password(self, user_id: str, old_password: str, new_password: str) -> None:
        if not is_valid_password(old_password) or not is_valid_password(new_password):
            raise InvalidInputError("Old password and new password are required")

        user = self.store.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        if not verify_password(old_password, user.password_hash):
            raise UnauthorizedError("Old password is incorrect")

        user.password_hash = get_password_hash(new_password)
        self.store.save(user)
        logger.info("Password changed for user %s", user.id)

    def update_account(self, user_id: str, username: Optional[str] = None, full_name: Optional[str] = None) -> User:
        if is_blank(username) and is_blank(full_name):
            raise InvalidInputError("Either a username or a full name is required to update account")

        if (username and not is_valid_username(username)) or (full_name and not is_valid_full_name(full_name)):
            raise InvalidInputError("Invalid username or full name format")

        user = self.store.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        if username:
            username = username.lower()
            existing = self.store.get_by_username(username)
            if existing and existing.id != user.id:
                raise ConflictError("Username already exists")
            user.username = username

        if full_name:
            user.full_name = full_name

        try:
            return self.store.save(user)
        except DuplicateKeyError:
            raise ConflictError("Username already exists")

    def get_user(self, requester_id: str, user_id: str) -> User:
        if str(requester_id) != str(user_id):
            raise ForbiddenError("You do not have permission to access this resource")

        user = self.store.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user
