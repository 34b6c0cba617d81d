import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    # Paged stream
    PAGE_SIZE: int = int(os.getenv("E57_PAGE_SIZE", 1024))
    READ_AHEAD_PAGES: int = int(os.getenv("E57_READ_AHEAD_PAGES", 4))

    # Encoder behaviour
    STRICT_FIELDS: bool = _env_bool("E57_STRICT_FIELDS", "false")

    # Logging
    LOG_LEVEL: str = os.getenv("E57_LOG_LEVEL", "INFO")
    LOG_FILE: str | None = os.getenv("E57_LOG_FILE") or None


settings = Settings()
