from pydantic_settings import BaseSettings

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36 Edg/131.0.0.0"
)


class Settings(BaseSettings):
    # OpenAI-compatible completion service
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    prompt: str = "You are a question-answering bot."

    # Search
    search_url: str = "https://html.duckduckgo.com/html?q="
    search_user_agent: str = DEFAULT_USER_AGENT
    http_timeout_seconds: float = 30.0

    # Output
    text_mode: bool = False
    verbose_output: bool = False
    render_url: str = ""  # markdown-to-image service, empty disables image output
    command_aliases: str = "search,ask"

    # Citation cache
    cache_enabled: bool = True
    cache_backend: str = "memory"  # memory | file | none
    cache_dir: str = ".cache/citations"
    cache_max_entries: int = 10000  # memory backend only; 0 disables the cap
    max_age_seconds: int | None = None

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "ASKAI_",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def command_alias_list(self) -> list[str]:
        return [a.strip() for a in self.command_aliases.split(",") if a.strip()]


settings = Settings()
