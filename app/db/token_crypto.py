from cryptography.fernet import Fernet, InvalidToken
from app.config import settings
from app.logging_config import get_logger

logger = get_logger(__name__)

def _fernet() -> Fernet:
    if not settings.fernet_key:
        raise RuntimeError("FERNET_KEY is missing in .env")
    return Fernet(settings.fernet_key.encode())

def encrypt_token(plain: str) -> str:
    return _fernet().encrypt(plain.encode()).decode()

def decrypt_token(cipher: str) -> str:
    try:
        return _fernet().decrypt(cipher.encode()).decode()
    except (TypeError, InvalidToken) as e:
        # usually means FERNET_KEY was rotated; the account must reconnect
        logger.error("Token decrypt failed: %r", e)
        raise
