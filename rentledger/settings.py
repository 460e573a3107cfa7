import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="RENTLEDGER_", extra="ignore")

    db_url: str = "sqlite:///rentledger.db"

    log_level: str = "INFO"
    log_json: bool = False

    min_payment_amount: int = 1000  # VND
    expiring_window_days: int = 30
    default_due_day: int = 3

    bill_category_name: str = "Tiền hóa đơn"
    default_category_id: str = "default-income"
    category_mapping: str = "single"  # 'single' or 'by_service'

    push_backend: str = "log"
    push_url: str = ""
    push_api_key: str = ""
    push_timeout: float = 10.0


settings = Settings()
