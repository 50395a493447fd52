import os
from dotenv import load_dotenv

load_dotenv()

def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")

class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./app.db")
    fernet_key: str = os.getenv("FERNET_KEY", "")
    twitter_client_id: str = os.getenv("TWITTER_CLIENT_ID", "")
    twitter_client_secret: str = os.getenv("TWITTER_CLIENT_SECRET", "")
    twitter_redirect_uri: str = os.getenv("TWITTER_REDIRECT_URI", "http://localhost:8000/auth/twitter/callback")
    # offline.access is what makes X hand out a refresh token
    twitter_scopes: str = os.getenv("TWITTER_SCOPES", "tweet.read tweet.write users.read offline.access")
    hf_api_token: str = os.getenv("HF_API_TOKEN", "")
    generator_model: str = os.getenv("GENERATOR_MODEL", "")
    scheduler_enabled: bool = _flag("SCHEDULER_ENABLED", "true")
    # standard 5-field cron: m h dom mon dow
    scheduler_cron: str = os.getenv("SCHEDULER_CRON", "* * * * *")
    scheduler_batch_limit: int = int(os.getenv("SCHEDULER_BATCH_LIMIT", "100"))
    token_lifetime_seconds: int = int(os.getenv("TOKEN_LIFETIME_SECONDS", "7200"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

settings = Settings()
