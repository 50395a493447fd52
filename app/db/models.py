import enum
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import Base, utcnow
from app.db import token_crypto


class TweetStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    POSTED = "posted"
    FAILED = "failed"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(320), unique=True, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    accounts = relationship("TwitterAccount", back_populates="owner", cascade="all, delete-orphan")
    tweets = relationship("Tweet", back_populates="owner", cascade="all, delete-orphan")


class TwitterAccount(Base):
    __tablename__ = "twitter_accounts"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    twitter_id = Column(String(64), unique=True, nullable=False)
    username = Column(String(64), nullable=False)
    display_name = Column(String(128), nullable=False, default="")
    profile_image_url = Column(String(1024), nullable=True)
    follower_count = Column(Integer, default=0)
    following_count = Column(Integer, default=0)
    # tokens are Fernet-encrypted at rest; use the access_token/refresh_token properties
    access_token_encrypted = Column(Text, nullable=False)
    refresh_token_encrypted = Column(Text, nullable=True)
    token_expires_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    owner = relationship("User", back_populates="accounts")

    @property
    def access_token(self) -> str:
        return token_crypto.decrypt_token(self.access_token_encrypted)

    @access_token.setter
    def access_token(self, value: str) -> None:
        self.access_token_encrypted = token_crypto.encrypt_token(value)

    @property
    def refresh_token(self) -> Optional[str]:
        if not self.refresh_token_encrypted:
            return None
        return token_crypto.decrypt_token(self.refresh_token_encrypted)

    @refresh_token.setter
    def refresh_token(self, value: Optional[str]) -> None:
        self.refresh_token_encrypted = token_crypto.encrypt_token(value) if value else None


class Tweet(Base):
    __tablename__ = "tweets"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    twitter_account_id = Column(Integer, ForeignKey("twitter_accounts.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    scheduled_for = Column(DateTime, nullable=True, index=True)
    posted_at = Column(DateTime, nullable=True)
    twitter_tweet_id = Column(String(64), nullable=True)
    status = Column(String(16), nullable=False, default=TweetStatus.DRAFT.value, index=True)
    approval_status = Column(String(16), nullable=False, default=ApprovalStatus.PENDING.value)
    topics = Column(JSON, nullable=True)           # topic names used for generation
    ai_prompt = Column(Text, nullable=True)
    engagement_data = Column(JSON, nullable=True)  # e.g. {"engagement_score": 7.5, "hashtags": [...]}
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    owner = relationship("User", back_populates="tweets")


class ContentTopic(Base):
    __tablename__ = "content_topics"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), unique=True, nullable=False)
    icon = Column(String(64), nullable=False, default="")
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class UserTopic(Base):
    __tablename__ = "user_topics"
    __table_args__ = (UniqueConstraint("user_id", "topic_id"),)
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    topic_id = Column(Integer, ForeignKey("content_topics.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    topic = relationship("ContentTopic")
