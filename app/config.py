"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration – values are read from `.env` or the environment."""

    # LLM (any OpenAI-compatible endpoint; Ollama by default)
    llm_base_url: str = "http://localhost:11434/v1"
    llm_api_key: str = "unused"  # Ollama does not require an API key
    llm_model: str = "llava"  # must accept image input and tools
    llm_temperature: float = 0.7
    llm_max_tokens: int = 4096
    llm_timeout_seconds: float = 120.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
