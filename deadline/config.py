from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Shared secret for mutating/analysis routes
    api_secret_key: str = ""

    # Search provider
    search_provider: str = "google"  # google | tavily
    google_api_key: str = ""
    google_search_engine_id: str = ""
    tavily_api_key: str = ""
    search_fallback_to_tavily: bool = False
    search_timeout_seconds: float = 10.0
    image_search_timeout_seconds: float = 8.0

    # LLM (any OpenAI-compatible endpoint, Groq by default)
    llm_api_key: str = ""
    llm_base_url: str = "https://api.groq.com/openai/v1"
    llm_model: str = "llama-3.3-70b-versatile"
    llm_temperature: float = 0.1
    llm_max_tokens: int = 8000
    llm_timeout_seconds: float = 15.0

    # Pipeline budgets
    max_tokens_budget: int = 12000
    avg_chars_per_token: int = 4
    max_chars_per_site: int = 3000
    max_articles_per_period: int = 8
    max_results_per_period: int = 10
    max_snippets: int = 20
    max_images: int = 8
    period_delay_ms: int = 500
    scrape_timeout_seconds: float = 12.0
    title_timeout_seconds: float = 10.0

    # Cache revalidation sink
    revalidate_webhook_url: str = ""
    revalidate_timeout_seconds: float = 5.0

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"
    log_retention_days: int = 7

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def max_total_chars(self) -> int:
        return self.max_tokens_budget * self.avg_chars_per_token


settings = Settings()
