import logging
from fastapi import Depends, Header, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session
from typing import Optional

from sliceurl.database import get_db
from sliceurl.errors import InvalidInputError, UnauthorizedError
from sliceurl.mailer import Mailer, create_mailer
from sliceurl.models import ANONYMOUS_CREATOR
from sliceurl.services.identity import IdentityManager
from sliceurl.services.links import LinkManager, LinkResolver
from sliceurl.social import IdentityVerifier, JoseIdentityVerifier
from sliceurl.stores import AccountStore, LinkStore, VisitorStore
from sliceurl.utils import decode_access_token, extract_client_info

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)

async def get_current_user_id(token: Optional[str] = Depends(oauth2_scheme)) -> str:
    """Достает id пользователя из bearer-токена"""
    if not token:
        raise UnauthorizedError("Authorization token is required")

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")

    user_id = payload.get("userId")
    if not user_id:
        raise UnauthorizedError("Invalid or expired token")

    return str(user_id)

async def get_anonymous_owner(anonymous: Optional[str] = Header(None)) -> str:
    """Анонимное создание ссылок разрешено только с заголовком `anonymous`"""
    if not anonymous:
        raise InvalidInputError("Invalid request.")
    return ANONYMOUS_CREATOR

def get_mailer() -> Mailer:
    return create_mailer()

# Один экземпляр на процесс: он держит кеш сертификатов провайдера
identity_verifier = JoseIdentityVerifier()

def get_identity_verifier() -> IdentityVerifier:
    return identity_verifier

def get_link_manager(db: Session = Depends(get_db)) -> LinkManager:
    return LinkManager(LinkStore(db))

def get_link_resolver(db: Session = Depends(get_db)) -> LinkResolver:
    return LinkResolver(LinkStore(db))

def get_visitor_store(db: Session = Depends(get_db)) -> VisitorStore:
    return VisitorStore(db)

def get_identity_manager(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    verifier: IdentityVerifier = Depends(get_identity_verifier)
) -> IdentityManager:
    return IdentityManager(AccountStore(db), mailer, verifier)

async def get_client_info(request: Request):
    """Получает информацию о клиенте из запроса"""
    return extract_client_info(request)
