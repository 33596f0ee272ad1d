import os
from typing import List

class Settings:
    def _split_csv(self, raw: str, *, default: List[str]) -> List[str]:
        parts = [p.strip() for p in (raw or "").split(",")]
        return [p for p in parts if p] or default

    def _float(self, name: str, default: float) -> float:
        raw = (os.getenv(name) or "").strip()
        if not raw:
            return default
        try:
            return float(raw)
        except ValueError:
            return default

    def __init__(self) -> None:
        self.env = os.getenv('APP_ENV', 'local')
        # Flat-file sources owned by the receipt logger / chart editor.
        self.receipt_log_file = os.getenv('RECEIPT_LOG_FILE', 'receipt-uploads.jsonl')
        self.account_chart_file = os.getenv('ACCOUNT_CHART_FILE', 'account-chart.json')
        self.company_profile_file = os.getenv('COMPANY_PROFILE_FILE', 'company-profile.json')
        # Overrides company-profile.json `tax_id` when set.
        self.org_tax_id = (os.getenv('ORG_TAX_ID') or '').strip()
        self.source_read_timeout = self._float('SOURCE_READ_TIMEOUT_SECONDS', 10.0)
        self.cors_origins = self._split_csv(
            os.getenv("CORS_ORIGINS", "").strip(),
            default=["http://localhost:3000", "http://127.0.0.1:3000"],
        )
        self.api_version = os.getenv("APP_VERSION", "0.1.0").strip() or "0.1.0"

settings = Settings()
