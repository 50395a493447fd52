from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional
from sqlalchemy.orm import Session
from app.db import crud, crud_accounts
from app.deps import get_db
from app.errors import ContentGenerationError
from app.services.content import generate_tweets

router = APIRouter(prefix="/generate", tags=["generate"])

class GenerateIn(BaseModel):
    user_id: int
    topic_ids: List[int]
    style: Literal["professional", "casual", "engaging", "educational"] = "engaging"
    length: Literal["short", "medium", "long"] = "medium"
    include_hashtags: bool = True
    include_emojis: bool = True
    count: int = Field(1, ge=1, le=5)
    # when set, drafts are saved for this account and await approval
    twitter_account_id: Optional[int] = None

@router.post("/tweets")
def generate(body: GenerateIn, db: Session = Depends(get_db)) -> Dict[str, Any]:
    selected = [ut.topic.name for ut in crud.get_user_topics(db, body.user_id) if ut.topic_id in body.topic_ids]
    if not selected:
        raise HTTPException(400, "No valid topics selected")
    if body.twitter_account_id is not None:
        acct = crud_accounts.get_account(db, body.twitter_account_id)
        if not acct or acct.user_id != body.user_id:
            raise HTTPException(400, "Unknown twitter_account_id for this user")

    try:
        drafts = generate_tweets(
            selected,
            count=body.count,
            style=body.style,
            length=body.length,
            include_hashtags=body.include_hashtags,
            include_emojis=body.include_emojis,
        )
    except ContentGenerationError as e:
        raise HTTPException(502, str(e))

    out = []
    for d in drafts:
        item = {k: d[k] for k in ("content", "hashtags", "engagement_score", "character_count")}
        if body.twitter_account_id is not None:
            t = crud.create_tweet(db, {
                "user_id": body.user_id,
                "twitter_account_id": body.twitter_account_id,
                "content": d["content"],
                "topics": selected,
                "ai_prompt": d["prompt"],
                "engagement_data": {"engagement_score": d["engagement_score"], "hashtags": d["hashtags"]},
            })
            item["tweet_id"] = t.id
        out.append(item)
    return {"content": out}
