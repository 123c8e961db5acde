"""
Configuration settings for the Drainsketch application.
"""

from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from drainsketch.models.pricing import PricingRates, PromoPolicy, PromoRateOverrides


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Attributes:
        projects_dir: Directory holding saved project documents
        autosave_debounce_seconds: Quiet period before an automatic save fires
        promo_cutoff: Instant at which promotional pricing ends
        mapbox_token: Access token for the address resolver
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="DRAINSKETCH_",
    )

    # Storage settings
    projects_dir: Path = Path("./data/projects")
    autosave_debounce_seconds: float = Field(default=2.0, gt=0)

    # Regular rate table
    hydroblox_rate_per_lf: float = Field(default=45.0, ge=0)
    parallel_rate_per_lf: float = Field(default=35.0, ge=0)
    transition_box_rate: float = Field(default=400.0, ge=0)
    stormwater_box_rate: float = Field(default=750.0, ge=0)

    # Promotional pricing (unset overrides fall back to the regular rate)
    promo_enabled: bool = True
    promo_starts_at: Optional[datetime] = None
    promo_cutoff: Optional[datetime] = datetime.fromisoformat("2026-04-01T00:00:00-04:00")
    promo_hydroblox_rate_per_lf: Optional[float] = Field(default=40.0, ge=0)
    promo_parallel_rate_per_lf: Optional[float] = Field(default=30.0, ge=0)
    promo_transition_box_rate: Optional[float] = Field(default=350.0, ge=0)
    promo_stormwater_box_rate: Optional[float] = Field(default=650.0, ge=0)

    # Address resolver
    mapbox_token: Optional[str] = None
    geocoding_base_url: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"
    geocoding_country: str = "US"
    geocoding_timeout_seconds: float = Field(default=10.0, ge=1.0, le=60.0)

    # Default map centre for new projects (New Smyrna Beach, FL)
    default_lat: float = 29.0258
    default_lng: float = -80.927

    # API settings
    api_v1_prefix: str = "/api/v1"
    port: int = 8000

    # CORS settings
    cors_origins: str = "http://localhost:5173,http://localhost:3000,http://localhost:4173"

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    def regular_rates(self) -> PricingRates:
        """Build the regular rate table."""
        return PricingRates(
            hydroblox_per_lf=self.hydroblox_rate_per_lf,
            parallel_per_lf=self.parallel_rate_per_lf,
            transition_box=self.transition_box_rate,
            stormwater_box=self.stormwater_box_rate,
        )

    def promo_policy(self) -> Optional[PromoPolicy]:
        """
        Build the promotional pricing policy.

        Returns:
            PromoPolicy, or None when promotions are disabled or have no cutoff
        """
        if not self.promo_enabled or self.promo_cutoff is None:
            return None

        return PromoPolicy(
            starts_at=self.promo_starts_at,
            cutoff=self.promo_cutoff,
            overrides=PromoRateOverrides(
                hydroblox_per_lf=self.promo_hydroblox_rate_per_lf,
                parallel_per_lf=self.promo_parallel_rate_per_lf,
                transition_box=self.promo_transition_box_rate,
                stormwater_box=self.promo_stormwater_box_rate,
            ),
        )


# Global settings instance
settings = Settings()
