from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Text
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from sliceurl.database import Base

ANONYMOUS_CREATOR = "anonymous"

AUTH_TYPE_PASSWORD = "email+password"
AUTH_TYPE_GOOGLE = "google"
AUTH_TYPE_GITHUB = "github"
SOCIAL_AUTH_TYPES = (AUTH_TYPE_GOOGLE, AUTH_TYPE_GITHUB)


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    full_name = Column(String(100), nullable=False)
    password_hash = Column(String(100), nullable=False, default="")
    auth_type = Column(String(20), nullable=False, default=AUTH_TYPE_PASSWORD)
    is_account_confirmed = Column(Boolean, nullable=False, default=False)
    account_confirmation_token = Column(String(64), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=utcnow)

    @property
    def is_social(self) -> bool:
        return self.auth_type in SOCIAL_AUTH_TYPES


class Link(Base):
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True)
    short_id = Column(String(10), unique=True, index=True, nullable=False)
    # NULL пока алиас не задан, уникальность проверяется только для заданных
    alias = Column(String(10), unique=True, index=True, nullable=True)
    original_url = Column(Text, nullable=False)
    short_url = Column(Text, nullable=False)
    creator = Column(String(64), index=True, nullable=False)
    clicks = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    clicked_at = relationship(
        "Click",
        back_populates="link",
        cascade="all, delete-orphan",
        order_by="Click.id"
    )


class Click(Base):
    __tablename__ = "clicks"

    id = Column(Integer, primary_key=True, index=True)
    link_id = Column(Integer, ForeignKey("links.id", ondelete="CASCADE"), index=True, nullable=False)
    time = Column(DateTime(timezone=True), default=utcnow)
    user_agent = Column(Text, nullable=True)
    source = Column(String(255), nullable=False, default="unknown")

    link = relationship("Link", back_populates="clicked_at")


class Visitor(Base):
    __tablename__ = "visitors"

    id = Column(Integer, primary_key=True, index=True)
    visited_at = Column(DateTime(timezone=True), default=utcnow)
    user_agent = Column(Text, nullable=True)
    source = Column(String(255), nullable=False, default="unknown")
