"""Жизненный цикл коротких ссылок и переход по ним.

:class:`LinkManager` создает, отдает и удаляет ссылки владельца и назначает
алиасы. :class:`LinkResolver` обслуживает публичный переход по коду без
аутентификации и записывает клик.

Короткий код и алиас живут в одном пространстве имен: перед записью
проверяются оба столбца, а окончательное слово остается за ограничениями
уникальности в базе. Коллизия при вставке нового кода приводит к повторной
генерации, а не к ошибке.
"""
import logging
from typing import List, Optional

from sliceurl.config import settings
from sliceurl.errors import ConflictError, DuplicateKeyError, ForbiddenError, InvalidInputError, NotFoundError
from sliceurl.models import Link
from sliceurl.stores import LinkStore
from sliceurl.utils import build_short_url, generate_unique_string
from sliceurl.validation import is_valid_alias, validate_url

logger = logging.getLogger(__name__)

MIN_CODE_LENGTH = 3
MAX_CODE_LENGTH = 10
UNKNOWN_SOURCE = "unknown"

BROKEN_LINK_MESSAGE = "You might have clicked on a broken URL."
FORBIDDEN_OPERATION_MESSAGE = "You do not have permission to perform this operation"
INVALID_ALIAS_MESSAGE = (
    "Invalid link alias. The alias must be at least 3 characters long and up to 10 characters long, "
    "and should contain only numbers and lowercase letters (a-z)."
)


class LinkResolver:
    def __init__(self, store: LinkStore):
        self.store = store

    def resolve(self, code: str, user_agent: Optional[str] = None, source: Optional[str] = None) -> Link:
        """Находит ссылку по коду или алиасу и записывает клик"""
        if not code or not code.strip() or not MIN_CODE_LENGTH <= len(code) <= MAX_CODE_LENGTH:
            raise InvalidInputError(BROKEN_LINK_MESSAGE)

        link = self.store.find_by_code(code)
        if not link:
            raise NotFoundError(BROKEN_LINK_MESSAGE)

        source = source.strip() if source and source.strip() else UNKNOWN_SOURCE
        self.store.record_click(link, user_agent, source)
        logger.debug("Click recorded for %s (source=%s)", code, source)
        return link


class LinkManager:
    def __init__(self, store: LinkStore, max_attempts: int = settings.SHORT_ID_MAX_ATTEMPTS):
        self.store = store
        self.max_attempts = max_attempts

    def create(self, original_url: Optional[str], owner_id: str) -> Link:
        is_valid, message = validate_url(original_url)
        if not is_valid:
            raise InvalidInputError(message)

        for attempt in range(1, self.max_attempts + 1):
            short_id = generate_unique_string()
            if self.store.code_taken(short_id):
                logger.warning("Short id %s already taken (attempt %d)", short_id, attempt)
                continue

            link = Link(
                short_id=short_id,
                alias=None,
                original_url=original_url,
                short_url=build_short_url(short_id),
                creator=owner_id,
                clicks=0
            )
            try:
                link = self.store.insert(link)
            except DuplicateKeyError:
                logger.warning("Short id %s collided on insert (attempt %d)", short_id, attempt)
                continue

            logger.info("Created short link %s -> %s", link.short_id, link.original_url)
            return link

        logger.error("Could not generate a free short id after %d attempts", self.max_attempts)
        raise ConflictError("There was an conflict error")

    def list(self, owner_id: str) -> List[Link]:
        return self.store.list_by_creator(owner_id)

    def get(self, short_id: str, owner_id: str, forbidden_message: Optional[str] = None) -> Link:
        """Отдает ссылку владельцу: сначала проверка существования, потом прав"""
        if not short_id or not short_id.strip() or len(short_id) < settings.SHORT_ID_LENGTH:
            raise InvalidInputError("Invalid link id")

        link = self.store.get_by_short_id(short_id)
        if not link:
            raise NotFoundError("Link not found")

        if link.creator != owner_id:
            raise ForbiddenError(forbidden_message)

        return link

    def delete(self, short_id: str, owner_id: str) -> None:
        link = self.get(short_id, owner_id, FORBIDDEN_OPERATION_MESSAGE)
        self.store.delete(link)
        logger.info("Deleted short link %s", short_id)

    def set_alias(self, short_id: str, owner_id: str, alias: Optional[str]) -> Link:
        if not short_id or not short_id.strip() or len(short_id) < settings.SHORT_ID_LENGTH:
            raise InvalidInputError("Invalid link id")

        if not is_valid_alias(alias):
            raise InvalidInputError(INVALID_ALIAS_MESSAGE)

        link = self.get(short_id, owner_id, FORBIDDEN_OPERATION_MESSAGE)

        alias = alias.lower()
        # Текущая ссылка из проверки не исключается: повторная установка того же алиаса дает конфликт
        if self.store.code_taken(alias):
            raise ConflictError(f"This alias ({alias}) is already exists. Try a different one")

        try:
            link = self.store.set_alias(link, alias, build_short_url(alias))
        except DuplicateKeyError:
            raise ConflictError(f"This alias ({alias}) is already exists. Try a different one")

        logger.info("Alias %s assigned to %s", alias, short_id)
        return link
