"""
Configuration management for RingScan.
Reads environment variables (and an optional .env file) into a Settings object.
"""

import os
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application and scan settings with environment variable support."""

    def __init__(self):

        self.app_name = os.getenv("APP_NAME", "RingScan API")
        self.app_version = os.getenv("APP_VERSION", "1.0.0")
        self.log_level = self._validate_log_level(os.getenv("LOG_LEVEL", "INFO"))

        cors_origins_str = os.getenv("CORS_ORIGINS", "*")
        self.cors_origins = self._parse_cors_origins(cors_origins_str)

        self.load_mode = self._validate_load_mode(os.getenv("LOAD_MODE", "strict"))

        self.scan_min_hops = int(os.getenv("SCAN_MIN_HOPS", "2"))
        self.scan_max_fee_ratio = float(os.getenv("SCAN_MAX_FEE_RATIO", "0.2"))
        self.scan_max_depth = int(os.getenv("SCAN_MAX_DEPTH", "0"))
        self.scan_workers = int(os.getenv("SCAN_WORKERS", str(os.cpu_count() or 1)))
        self.scan_chunk_size = int(os.getenv("SCAN_CHUNK_SIZE", "256"))
        self.scan_time_budget_seconds = float(
            os.getenv("SCAN_TIME_BUDGET_SECONDS", "0")
        )

        self._validate_scan_defaults()

    @property
    def max_depth(self) -> Optional[int]:
        """Configured depth bound, or None to use the number of accounts."""
        return self.scan_max_depth or None

    @property
    def time_budget(self) -> Optional[float]:
        """Configured wall-clock budget in seconds, or None for unbounded scans."""
        return self.scan_time_budget_seconds or None

    def _parse_cors_origins(self, origins_str: str) -> List[str]:
        """Parse CORS origins from string."""
        if origins_str == "*":
            return ["*"]
        return [origin.strip() for origin in origins_str.split(",")]

    def _validate_log_level(self, level: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        level_upper = level.upper()
        if level_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return level_upper

    def _validate_load_mode(self, mode: str) -> str:
        """Validate the ingestion policy for bad transactions."""
        valid_modes = ["strict", "lenient"]
        mode_lower = mode.lower()
        if mode_lower not in valid_modes:
            raise ValueError(f"Load mode must be one of: {valid_modes}")
        return mode_lower

    def _validate_scan_defaults(self):
        """Validate scan defaults."""
        if self.scan_min_hops < 2:
            raise ValueError(f"scan_min_hops must be at least 2, got: {self.scan_min_hops}")
        if not 0.0 < self.scan_max_fee_ratio < 1.0:
            raise ValueError(
                f"scan_max_fee_ratio must be in (0, 1), got: {self.scan_max_fee_ratio}"
            )

        positive_int_fields = [
            ("scan_workers", self.scan_workers),
            ("scan_chunk_size", self.scan_chunk_size),
        ]
        for field_name, value in positive_int_fields:
            if value <= 0:
                raise ValueError(f"{field_name} must be positive, got: {value}")

        non_negative_fields = [
            ("scan_max_depth", self.scan_max_depth),
            ("scan_time_budget_seconds", self.scan_time_budget_seconds),
        ]
        for field_name, value in non_negative_fields:
            if value < 0:
                raise ValueError(f"{field_name} must not be negative, got: {value}")


settings = Settings()
