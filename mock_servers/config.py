from pydantic_settings import BaseSettings, SettingsConfigDict


class MockServerSettings(BaseSettings):
    """Settings shared by both mock servers."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    SERVICE_NAME: str = "mock-server"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, production

    # Server
    HOST: str = "0.0.0.0"

    # Logging
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL


class LLMMockSettings(MockServerSettings):
    """OpenAI-compatible chat completion mock."""

    SERVICE_NAME: str = "mock-llm-server"

    MOCK_LLM_PORT: int = 4097
    MOCK_MODEL_ID: str = "mock-gpt-4"

    # Streaming schedule
    STREAM_WORD_DELAY_MS: int = 50      # gap between consecutive word frames
    STREAM_FINISH_DELAY_MS: int = 100   # extra wait before the stop frame

    @property
    def port(self) -> int:
        return self.MOCK_LLM_PORT


class OpenCodeMockSettings(MockServerSettings):
    """Session backend mock."""

    SERVICE_NAME: str = "mock-opencode-server"

    OPENCODE_SERVER_PORT: int = 4096
    WORKING_DIRECTORY: str = "/test"

    # Seed data
    SEED_SESSION: bool = True
    SEED_SESSION_TITLE: str = "Test Session"

    @property
    def port(self) -> int:
        return self.OPENCODE_SERVER_PORT
