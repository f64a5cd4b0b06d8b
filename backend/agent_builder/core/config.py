from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="AGENT_BUILDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API
    api_title: str = "Agent Builder API"
    api_version: str = "0.1.0"
    api_prefix: str = "/api/v1"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Storage
    projects_dir: Path = Path("./projects")
    templates_dir: Path = Path(__file__).resolve().parent.parent / "templates"

    # Logging
    log_level: str = "INFO"

    # Code generation
    default_model_provider: str = "openai"
    default_model_name: str = "gpt-4o-mini"
    workflow_id: str = "main"
    package_versions: dict[str, str] = {
        "@mastra/core": "latest",
        "@mastra/memory": "latest",
        "mastra": "latest",
        "zod": "^3.23.0",
        "@ai-sdk/openai": "latest",
        "@ai-sdk/anthropic": "latest",
        "@ai-sdk/google": "latest",
        "@ai-sdk/mistral": "latest",
        "@ai-sdk/groq": "latest",
        "@ai-sdk/cohere": "latest",
        "typescript": "^5.0.0",
        "tsx": "^4.0.0",
        "@types/node": "^20.0.0",
    }

    # Preview
    preview_port: int = 4111
    npm_command: str = "npm"
    install_timeout: int = 300


settings = Settings()
