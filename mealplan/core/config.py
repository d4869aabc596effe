from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Meal Plan Engine"

    # Database
    DATABASE_URL: str = "sqlite:///./db/mealplan.db"

    # Logging
    LOGGING_CONFIG: str = "logging.ini"
    LOG_SLOW_OPERATION_MS: float = 500
    LOG_SAMPLE_RATE: float = 0.05

    # Seeded into a household's pantry the first time it is read
    DEFAULT_PANTRY_ITEMS: List[str] = [
        "salt",
        "pepper",
        "olive oil",
        "butter",
        "flour",
        "sugar",
    ]

    # Household join codes
    JOIN_CODE_TTL_MINUTES: int = 60
    JOIN_CODE_LENGTH: int = 8

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")

settings = Settings()
