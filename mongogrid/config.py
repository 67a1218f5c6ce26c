from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """ Service configuration: read from the environment, or from a `.env` file """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # MongoDB connection string
    DATABASE: str
    SERVER_SELECTION_TIMEOUT_MS: int = 5000

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: Optional[int] = None
    # Atlas Search index; None is the index called "default"
    SEARCH_INDEX: Optional[str] = None

    def handler_settings(self) -> dict:
        """ MongoPipeline handler settings """
        return dict(
            default_page_size=self.DEFAULT_PAGE_SIZE,
            max_items=self.MAX_PAGE_SIZE,
            search_index=self.SEARCH_INDEX,
        )
