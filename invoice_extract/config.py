"""Configuration management for invoice extraction."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized configuration for invoice extraction."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API Configuration
    gemini_api_key: str = Field(..., description="Gemini API key for document processing")
    use_vertex_ai: bool = Field(default=False, description="Use Vertex AI instead of standard Gemini API")
    google_cloud_project: str = Field(default="not-set", description="Google Cloud project for Vertex AI")
    google_cloud_location: str = Field(default="not-set", description="Google Cloud location for Vertex AI")

    # Model Configuration
    extraction_model: str = Field(default="gemini-2.5-flash", description="Model for invoice extraction")
    max_output_tokens: int = Field(default=2000, gt=0, description="Maximum tokens in the model reply")

    # Batch Configuration
    max_batch_size: int = Field(default=50, ge=1, description="Maximum documents per batch")
    max_file_size_bytes: int = Field(default=10 * 1024 * 1024, gt=0, description="Maximum size of one document")
    inter_document_delay_seconds: float = Field(default=0.5, ge=0, description="Pause between documents in a batch")

    # Rate Limiting (HTTP boundary)
    rate_limit_requests: int = Field(default=10, ge=1, description="Requests allowed per client per window")
    rate_limit_window_seconds: float = Field(default=3600.0, gt=0, description="Rate limit window length")
    rate_limit_max_clients: int = Field(default=10_000, ge=1, description="Maximum tracked clients")

    # Debug Configuration
    debug_responses: bool = Field(default=False, description="Save model replies for debugging")

    # File Paths
    responses_directory: Path = Field(default=Path("json_responses"), description="Where debug replies are saved")
    output_directory: Path = Field(default=Path("output"), description="Output directory for exports")
    logs_directory: Path = Field(default=Path("logs"), description="Log file directory")

    @field_validator("gemini_api_key")
    @classmethod
    def api_key_must_not_be_empty(cls, v):
        """Ensure API key is provided."""
        if not v or v.strip() == "":
            raise ValueError("GEMINI_API_KEY must be provided")
        return v

    @field_validator("debug_responses", mode="before")
    @classmethod
    def parse_debug_flag(cls, v):
        """Parse debug flag from string."""
        if isinstance(v, str):
            return v == "1" or v.lower() == "true"
        return v

    @property
    def api_client_kwargs(self) -> dict:
        """Get genai.Client configuration."""
        if self.use_vertex_ai:
            return {
                "vertexai": True,
                "project": self.google_cloud_project,
                "location": self.google_cloud_location,
            }
        return {"api_key": self.gemini_api_key}


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
