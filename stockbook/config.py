import os
from typing import Optional

from pydantic import BaseModel


class Settings(BaseModel):
    data_dir: Optional[str] = None     # unset: keep everything in memory
    write_timeout: float = 5.0         # seconds
    log_level: str = "INFO"
    low_stock_threshold: int = 5
    seed_on_startup: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            data_dir=os.environ.get("STOCKBOOK_DATA_DIR") or None,
            write_timeout=os.environ.get("STOCKBOOK_WRITE_TIMEOUT", "5.0"),
            log_level=os.environ.get("STOCKBOOK_LOG_LEVEL", "INFO").upper(),
            low_stock_threshold=os.environ.get("STOCKBOOK_LOW_STOCK_THRESHOLD", "5"),
            seed_on_startup=os.environ.get("STOCKBOOK_SEED", "false"),
        )
