import os


def get_env(name: str) -> str:
    val = os.getenv(name)
    if not val:
        raise RuntimeError(f"Missing required env var: {name}")
    return val


def get_env_optional(name: str) -> str | None:
    val = os.getenv(name)
    return val if val else None


class Settings:
    DATABASE_URL: str = get_env("DATABASE_URL")

    JWT_SECRET: str = get_env("JWT_SECRET")
    JWT_ALG: str = os.getenv("JWT_ALG", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", "10"))

    # seed CSV imported into an empty store on startup; unset disables it
    SAMPLE_DATA_PATH: str | None = get_env_optional("SAMPLE_DATA_PATH")

    EXPORT_BATCH_SIZE: int = int(os.getenv("EXPORT_BATCH_SIZE", "500"))
    RECENT_WINDOW_DAYS: int = int(os.getenv("RECENT_WINDOW_DAYS", "30"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
