import hmac

from fastapi import HTTPException, Query, status

from builderboard.config import settings


def verify_sync_secret(secret: str | None = Query(None)) -> None:
    """
    Защита sync-эндпоинтов: ?secret= должен совпасть с SYNC_SECRET.
    Если SYNC_SECRET не задан, синк закрыт для всех.
    """
    expected = settings.SYNC_SECRET
    if not expected or not secret or not hmac.compare_digest(secret.encode(), expected.encode()):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
