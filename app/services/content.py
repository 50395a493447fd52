import json
import re
from textwrap import dedent
from typing import Any, Dict, List, Optional

from app.config import settings
from app.errors import ContentGenerationError
from app.logging_config import get_logger
from app.services.hf_client import HFClient

logger = get_logger(__name__)

MAX_TWEET_CHARS = 280

SYSTEM = ("You are an expert social media content creator specializing in Twitter. "
          "You understand viral content patterns, trending topics, and engagement optimization.")

STYLE_INSTRUCTIONS = {
    "professional": "Write in a professional, authoritative tone suitable for business audiences. Focus on insights and expertise.",
    "casual": "Write in a friendly, conversational tone. Keep it relatable and approachable.",
    "engaging": "Write to maximize engagement with compelling hooks, questions, or thought-provoking statements.",
    "educational": "Write in an informative, educational tone that teaches or explains concepts clearly.",
}

LENGTH_INSTRUCTIONS = {
    "short": "Keep it concise, under 150 characters for maximum impact.",
    "medium": "Aim for 150-220 characters to balance detail with conciseness.",
    "long": "Use the full character limit (up to 280) to provide comprehensive content.",
}

HASHTAG_RE = re.compile(r"#(\w+)")
JSON_RE = re.compile(r"\{.*\}", re.DOTALL)

def _candidates_from_env() -> List[str]:
    raw = (settings.generator_model or "").strip()
    if not raw:
        return ["mistralai/Mistral-7B-Instruct-v0.3", "HuggingFaceH4/zephyr-7b-beta", "google/flan-t5-large"]
    return [m.strip() for m in raw.split(",") if m.strip()]

def build_prompt(topics: List[str], style: str = "engaging", length: str = "medium",
                 include_hashtags: bool = True, include_emojis: bool = True) -> str:
    style_text = STYLE_INSTRUCTIONS.get(style, "Write in an engaging, authentic voice that resonates with your audience.")
    length_text = LENGTH_INSTRUCTIONS.get(length, "Optimize length for the content type and engagement potential.")
    return dedent(f'''
    {SYSTEM}
    Generate a {style} tweet about {", ".join(topics)}.
    {style_text}
    {length_text}
    {"Include relevant trending hashtags." if include_hashtags else "Do not include hashtags."}
    {"Include appropriate emojis to increase engagement." if include_emojis else "Do not include emojis."}

    Respond with JSON in this format:
    {{"content": "The tweet content", "hashtags": ["hashtag1", "hashtag2"], "engagement_score": 8.5}}
    The engagement_score should be between 1-10 based on how likely the tweet is to get high engagement.
    Keep the content under {MAX_TWEET_CHARS} characters.
    ''').strip()

def parse_generated(raw: str) -> Dict[str, Any]:
    """Pull content/hashtags/score out of model output; plain text is accepted too."""
    result: Dict[str, Any] = {}
    match = JSON_RE.search(raw or "")
    if match:
        try:
            parsed = json.loads(match.group(0))
            if isinstance(parsed, dict):
                result = parsed
        except ValueError:
            pass

    content = str(result.get("content") or raw or "").strip().strip('"')
    if len(content) > MAX_TWEET_CHARS:
        content = content[:MAX_TWEET_CHARS - 1].rstrip() + "…"
    hashtags = result.get("hashtags")
    if not isinstance(hashtags, list):
        hashtags = HASHTAG_RE.findall(content)
    try:
        score = float(result.get("engagement_score", 5))
    except (TypeError, ValueError):
        score = 5.0
    return {
        "content": content,
        "hashtags": [str(h).lstrip("#") for h in hashtags],
        "engagement_score": max(1.0, min(10.0, score)),
        "character_count": len(content),
    }

def generate_tweet(topics: List[str], style: str = "engaging", length: str = "medium",
                   include_hashtags: bool = True, include_emojis: bool = True,
                   hf: Optional[HFClient] = None) -> Dict[str, Any]:
    if not topics:
        raise ContentGenerationError("No valid topics selected")
    prompt = build_prompt(topics, style, length, include_hashtags, include_emojis)
    params = {"max_new_tokens": 200, "temperature": 0.8, "top_p": 0.95, "return_full_text": False}
    hf = hf or HFClient()

    errors = []
    for model in _candidates_from_env():
        try:
            out = parse_generated(hf.text_generation(model, prompt, params=params))
        except ContentGenerationError as e:
            errors.append(f"{model}: {e}")
            continue
        if out["content"]:
            out["prompt"] = prompt
            return out
        errors.append(f"{model}: empty output")
    logger.warning("Tweet generation failed for topics %s", topics)
    raise ContentGenerationError("All generation models failed. Tried -> " + " | ".join(errors))

def generate_tweets(topics: List[str], count: int = 1, **options: Any) -> List[Dict[str, Any]]:
    hf = options.pop("hf", None) or HFClient()
    return [generate_tweet(topics, hf=hf, **options) for _ in range(count)]
