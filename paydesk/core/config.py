from pydantic import Field
from pydantic_settings import BaseSettings
from typing import List, Optional, Tuple

class Settings(BaseSettings):
    APP_NAME: str = Field("PayDesk", description="Logger namespace and report headers")
    DB_URL: str = Field("sqlite:///./data/paydesk.db", description="Database URL")
    LOG_LEVEL: str = Field("INFO", description="Root level for tenant loggers")
    LOG_PATH: str = Field("./data/logs", description="Directory for rotating logs and audit trails")

    CURRENCY: str = "ZMW"
    CURRENCY_SYMBOL: str = "K"

    # Statutory defaults (Zambia, monthly). Used to seed an empty store.
    # (width, rate); None width marks the unbounded top band
    PAYE_BANDS: List[Tuple[Optional[float], float]] = [
        (5100.0, 0.0),
        (2000.0, 0.20),
        (2100.0, 0.30),
        (None, 0.37),
    ]
    NAPSA_RATE: float = 0.05
    NAPSA_CEILING: float = 34164.0
    NHIMA_RATE: float = 0.01
    NHIMA_MAX_CONTRIBUTION: float = 1000.0

    PAYROLL_WORKERS: int = Field(4, description="Thread pool size for batch payroll runs")

settings = Settings()
