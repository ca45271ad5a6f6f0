from pydantic import BaseModel, Field, ValidationError, field_validator
from typing import Optional

from nk_core.constants import DEFAULT_WORKER_INTERVAL_MINUTES, MAX_KEYWORDS_PER_REQUEST

class GoogleAdsConfig(BaseModel):
    login_customer_id: Optional[str] = None
    customer_id: str

    @field_validator("customer_id")
    @classmethod
    def customer_id_digits_only(cls, v: str) -> str:
        v2 = "".join(ch for ch in v if ch.isdigit())
        if not v2:
            raise ValueError("google_ads.customer_id must contain digits")
        return v2

    @field_validator("login_customer_id")
    @classmethod
    def login_customer_id_digits_only(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return "".join(ch for ch in str(v) if ch.isdigit()) or None

class WorkerConfig(BaseModel):
    interval_minutes: int = Field(default=DEFAULT_WORKER_INTERVAL_MINUTES, ge=1)

class ProvisioningConfig(BaseModel):
    max_keywords_per_request: int = Field(default=MAX_KEYWORDS_PER_REQUEST, ge=1)

class ClientConfig(BaseModel):
    client_name: str

    google_ads: GoogleAdsConfig

    worker: WorkerConfig = WorkerConfig()
    provisioning: ProvisioningConfig = ProvisioningConfig()

    currency: str = "USD"
    timezone: str = "UTC"

def parse_client_config(data: dict) -> ClientConfig:
    # Raises ValidationError if invalid
    return ClientConfig.model_validate(data)
