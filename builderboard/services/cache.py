import time


class ProfilesCache:
    """
    Кэш профилей в памяти процесса (живёт между запросами одного воркера).
    """

    def __init__(self, ttl_seconds: float):
        self.ttl_seconds = ttl_seconds
        self._data: list[dict] | None = None
        self._ts: float = 0.0

    def age_seconds(self) -> int:
        if self._data is None:
            return 0
        return int(time.monotonic() - self._ts)

    def get(self) -> list[dict] | None:
        if self._data is None:
            return None
        if time.monotonic() - self._ts >= self.ttl_seconds:
            return None
        return self._data

    def set(self, profiles: list[dict]) -> None:
        self._data = profiles
        self._ts = time.monotonic()

    def clear(self) -> None:
        self._data = None
        self._ts = 0.0
