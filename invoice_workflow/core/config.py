from decimal import Decimal
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./invoice_workflow.db"
    sql_echo: bool = False
    default_currency: str = "PKR"

    # Default approval thresholds (PKR), overridable per company
    manager_only_threshold: Decimal = Decimal("50000")
    admin_required_threshold: Decimal = Decimal("500000")
    cfo_required_threshold: Decimal = Decimal("1000000")
    require_admin_for_new_vendor: bool = True

    coa_cache_ttl_seconds: int = 600

    accounting_api_timeout_seconds: float = 30.0
    endraaj_base_url: str = "https://api.endraaj.com/v1"
    quickbooks_base_url: str = "https://quickbooks.api.intuit.com/v3/company"

    upload_dir: str = "./uploads"
    upload_url_prefix: str = "/uploads"
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_upload_extensions: List[str] = [".pdf", ".png", ".jpg", ".jpeg", ".tif", ".tiff"]

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    ai_enabled: bool = True
    account_match_min_confidence: Decimal = Decimal("60.0")

    log_level: str = "INFO"
    log_format: str = "pretty"
    log_dir: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
