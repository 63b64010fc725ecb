from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("pdf-invoice-dashboard", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # HTTP server
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3001, alias="PORT")
    shutdown_grace_seconds: int = Field(30, alias="SHUTDOWN_GRACE_SECONDS")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000,http://localhost:8501", alias="CORS_ORIGINS")

    # MongoDB (records) + GridFS (PDF bytes)
    mongodb_uri: str = Field("mongodb://localhost:27017/pdf-dashboard", alias="MONGODB_URI")
    mongodb_db: str | None = Field(default=None, alias="MONGODB_DB")  # Falls back to the URI's default database
    mongo_max_pool_size: int = Field(10, alias="MONGO_MAX_POOL_SIZE")
    mongo_min_pool_size: int = Field(5, alias="MONGO_MIN_POOL_SIZE")
    mongo_connect_retries: int = Field(5, alias="MONGO_CONNECT_RETRIES")
    mongo_retry_delay_seconds: float = Field(5.0, alias="MONGO_RETRY_DELAY_SECONDS")
    gridfs_bucket: str = Field("pdfs", alias="GRIDFS_BUCKET")

    # AI backends (a missing key is reported when extraction is requested, not at startup)
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-2.5-flash", alias="GEMINI_MODEL")
    groq_api_key: str | None = Field(default=None, alias="GROQ_API_KEY")
    groq_models: str = Field(
        "llama-3.1-8b-instant,llama3-8b-8192,mixtral-8x7b-32768,gemma-7b-it",
        alias="GROQ_MODELS",
    )  # Comma-separated, tried in order
    ai_request_timeout_seconds: float = Field(120.0, alias="AI_REQUEST_TIMEOUT_SECONDS")

    # Upload / download limits
    max_upload_bytes: int = Field(25 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    upload_timeout_seconds: float = Field(60.0, alias="UPLOAD_TIMEOUT_SECONDS")
    download_timeout_seconds: float = Field(30.0, alias="DOWNLOAD_TIMEOUT_SECONDS")

    # Invoice listing
    invoice_page_size: int = Field(100, alias="INVOICE_PAGE_SIZE")

    # Streamlit frontend -> REST API
    dashboard_api_url: str = Field("http://localhost:3001/api", alias="DASHBOARD_API_URL")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def groq_model_list(self) -> list[str]:
        return [m.strip() for m in self.groq_models.split(",") if m.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

settings = Settings()
