"""Application settings loaded from environment variables via pydantic-settings.

Values are read from, in priority order:

  1. Environment variables (``OPENAI_API_KEY=sk-...``), which always win.
  2. The project-root ``.env`` file, for local development.

Field ``assemblyai_api_key`` maps to env var ``ASSEMBLYAI_API_KEY``.  An empty
string means "not configured"; provider builders in ``contentdesk.main`` skip
providers whose credentials are empty.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """contentdesk application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === OpenAI (embeddings + structured extraction) ===
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint override
    openai_text_model: str = ""  # defaults to gpt-4o-mini
    openai_embedding_model: str = ""  # defaults to text-embedding-3-small

    # === Speech-to-text ===
    assemblyai_api_key: str = ""
    assemblyai_base_url: str = "https://api.assemblyai.com/v2"

    # === YouTube transcript fetch ===
    scrape_creators_api_key: str = ""
    scrape_creators_base_url: str = "https://api.scrapecreators.com/v1"

    # === Persistence / storage ===
    database_path: str = "data/contentdesk.db"
    blob_storage_dir: str = "data/blobs"
    blob_signing_secret: str = "change-me"
    public_base_url: str = "http://localhost:8000"
    default_owner_id: str = "00000000-0000-0000-0000-000000000001"

    # === Ingestion ===
    chunk_target_chars: int = 1200
    embedding_max_attempts: int = 3
    embedding_backoff_seconds: float = 0.25
    metadata_extraction_max_chars: int = 20000

    # === Transcription ===
    transcription_poll_interval_seconds: float = 10.0
    transcription_max_poll_attempts: int = 90
    signed_url_ttl_seconds: int = 60 * 60 * 24 * 3

    # === Search ===
    search_match_threshold: float = 0.5
    search_match_count: int = 10

    # === Blob purge ===
    purge_max_age_days: int = 30
    purge_list_limit: int = 1000

    # === Job runner ===
    job_max_attempts: int = 3
    job_history_limit: int = 500  # finished job records kept for status polling

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_configured_providers(self) -> list[str]:
        """Return the external providers that have credentials configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.assemblyai_api_key:
            providers.append("assemblyai")
        if self.scrape_creators_api_key:
            providers.append("scrape_creators")
        return providers
