from sqlalchemy.orm import Session
from typing import Optional, List, Dict, Any
from app.db import models

DEFAULT_TOPICS = [
    {"name": "Technology", "icon": "fas fa-laptop-code", "description": "Latest tech trends, programming, and software development"},
    {"name": "Business", "icon": "fas fa-chart-line", "description": "Business insights, entrepreneurship, and industry news"},
    {"name": "Innovation", "icon": "fas fa-lightbulb", "description": "Breakthrough innovations and cutting-edge ideas"},
    {"name": "Movies", "icon": "fas fa-film", "description": "Film reviews, movie news, and entertainment"},
    {"name": "News", "icon": "fas fa-newspaper", "description": "Current events and trending news topics"},
    {"name": "Science", "icon": "fas fa-atom", "description": "Scientific discoveries and research"},
    {"name": "Health", "icon": "fas fa-heart", "description": "Health tips, wellness, and medical news"},
    {"name": "Education", "icon": "fas fa-graduation-cap", "description": "Learning resources and educational content"},
]

def create_user(db: Session, email: Optional[str] = None) -> models.User:
    u = models.User(email=email)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u

def get_user(db: Session, user_id: int) -> Optional[models.User]:
    return db.get(models.User, user_id)

# --- topics ---

def list_topics(db: Session) -> List[models.ContentTopic]:
    return (
        db.query(models.ContentTopic)
        .filter(models.ContentTopic.is_active.is_(True))
        .order_by(models.ContentTopic.name)
        .all()
    )

def seed_default_topics(db: Session) -> int:
    if db.query(models.ContentTopic).first():
        return 0
    for t in DEFAULT_TOPICS:
        db.add(models.ContentTopic(**t))
    db.commit()
    return len(DEFAULT_TOPICS)

def get_user_topics(db: Session, user_id: int) -> List[models.UserTopic]:
    return db.query(models.UserTopic).filter(models.UserTopic.user_id == user_id).all()

def set_user_topics(db: Session, user_id: int, topic_ids: List[int]) -> List[models.UserTopic]:
    # replace the whole selection
    db.query(models.UserTopic).filter(models.UserTopic.user_id == user_id).delete()
    for topic_id in dict.fromkeys(topic_ids):
        db.add(models.UserTopic(user_id=user_id, topic_id=topic_id))
    db.commit()
    return get_user_topics(db, user_id)

# --- tweets ---

def create_tweet(db: Session, data: Dict[str, Any]) -> models.Tweet:
    obj = models.Tweet(**data)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

def get_tweet(db: Session, tweet_id: int) -> Optional[models.Tweet]:
    return db.get(models.Tweet, tweet_id)

def list_tweets(db: Session, user_id: int, status: Optional[str] = None, limit: int = 50) -> List[models.Tweet]:
    q = db.query(models.Tweet).filter(models.Tweet.user_id == user_id)
    if status:
        q = q.filter(models.Tweet.status == status)
    return q.order_by(models.Tweet.created_at.desc(), models.Tweet.id.desc()).limit(limit).all()

def update_tweet(db: Session, tweet: models.Tweet, **fields: Any) -> models.Tweet:
    for k, v in fields.items():
        setattr(tweet, k, v)
    db.add(tweet)
    db.commit()
    db.refresh(tweet)
    return tweet
