"""Centralised application settings loaded from environment / .env file."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Estimation oracle (Gemini). A missing key is tolerated: every call
    # falls back to the offline estimate.
    api_key: str = Field("", validation_alias=AliasChoices("API_KEY", "GEMINI_API_KEY"))
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    oracle_timeout_seconds: float = 15.0

    # Lifecycle timers
    broadcast_delay_seconds: float = 1.0  # simulated network propagation
    completion_grace_seconds: float = 3.0  # COMPLETED ride stays visible
    discovery_interval_seconds: float = 5.0
    discovery_enabled: bool = True
    pool_cap: int = 3

    # Pricing
    delivery_discount: float = 0.10
    base_fare: float = 5.0  # BRL, hint passed to the route prompt
    rate_per_km: float = 2.5  # BRL / km

    # Session defaults
    default_customer_name: str = "Usuário ToNaRua"
    initial_today_earnings: float = 145.50
    initial_total_rides: int = 12
    initial_rating: float = 4.9

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
