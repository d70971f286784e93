from pydantic_settings import BaseSettings

from abverdict.stats.modes import AnalysisMode


class Settings(BaseSettings):
    PROJECT_NAME: str = "ABVerdict"
    API_V1_PREFIX: str = "/api/v1"

    LOG_LEVEL: str = "INFO"

    # Analysis defaults
    DEFAULT_MODE: AnalysisMode = AnalysisMode.standard
    DEFAULT_SAMPLES: int = 10_000
    MAX_SAMPLES: int = 200_000
    DEFAULT_BUSINESS_MDE: float = 0.0

    # Automatic winner evaluation
    WINNER_MODE: AnalysisMode = AnalysisMode.standard
    WINNER_BUSINESS_MDE: float = 0.05

    # Marsaglia-Tsang rejection rounds before giving up
    GAMMA_MAX_ROUNDS: int = 1000

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
