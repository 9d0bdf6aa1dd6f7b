from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    database_url: str = "sqlite:///./clinic.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_recycle: int = 300
    secret_key: str = "change-me"
    algorithm: str = "HS256"
    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "extra": "forbid"
    }

settings = Settings()
