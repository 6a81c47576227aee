"""Хранилища поверх SQLAlchemy-сессии.

Каждое хранилище получает сессию в конструкторе и ничего не знает о HTTP.
Нарушение уникальности при записи превращается в :class:`DuplicateKeyError`,
сессия при этом откатывается.
"""
from typing import List, Optional

from sqlalchemy import or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sliceurl.errors import DuplicateKeyError
from sliceurl.models import Click, Link, User, Visitor, utcnow


class LinkStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_code(self, code: str) -> Optional[Link]:
        """Ищет ссылку по короткому коду или алиасу одним запросом"""
        return self.db.query(Link).filter(
            or_(Link.short_id == code, Link.alias == code)
        ).first()

    def code_taken(self, code: str) -> bool:
        return self.find_by_code(code) is not None

    def get_by_short_id(self, short_id: str) -> Optional[Link]:
        return self.db.query(Link).filter(Link.short_id == short_id).first()

    def list_by_creator(self, creator: str) -> List[Link]:
        return self.db.query(Link).filter(Link.creator == creator).order_by(Link.id).all()

    def insert(self, link: Link) -> Link:
        self.db.add(link)
        self._commit()
        self.db.refresh(link)
        return link

    def set_alias(self, link: Link, alias: str, short_url: str) -> Link:
        link.alias = alias
        link.short_url = short_url
        self._commit()
        self.db.refresh(link)
        return link

    def record_click(self, link: Link, user_agent: Optional[str], source: str) -> Click:
        """Атомарно увеличивает счетчик и добавляет событие клика в одной транзакции"""
        self.db.query(Link).filter(Link.id == link.id).update(
            {Link.clicks: Link.clicks + 1},
            synchronize_session=False
        )
        click = Click(link_id=link.id, time=utcnow(), user_agent=user_agent, source=source)
        self.db.add(click)
        self.db.commit()
        self.db.refresh(link)
        return click

    def delete(self, link: Link) -> None:
        self.db.delete(link)
        self.db.commit()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateKeyError(str(e.orig)) from e


class AccountStore:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, user_id) -> Optional[User]:
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return None
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_by_email_or_username(self, email: str, username: str) -> Optional[User]:
        return self.db.query(User).filter(
            or_(User.email == email, User.username == username)
        ).first()

    def insert(self, user: User) -> User:
        self.db.add(user)
        self.save(user)
        return user

    def save(self, user: User) -> User:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateKeyError(str(e.orig)) from e
        self.db.refresh(user)
        return user


class VisitorStore:
    def __init__(self, db: Session):
        self.db = db

    def record_visit(self, user_agent: Optional[str], source: str) -> Visitor:
        visitor = Visitor(visited_at=utcnow(), user_agent=user_agent, source=source)
        self.db.add(visitor)
        self.db.commit()
        self.db.refresh(visitor)
        return visitor

    def count(self) -> int:
        return self.db.query(func.count(Visitor.id)).scalar() or 0
