"""Custom exceptions for the delivery analytics core.

Malformed data never raises: bad rows are skipped and counted. These are
reserved for malformed calls and unusable configuration.
"""

from typing import Any


class DeliveryAnalyticsError(Exception):
    """Base exception for delivery analytics errors."""

    pass


class ConfigLoadError(DeliveryAnalyticsError):
    """Failed to load or validate a YAML configuration file."""

    pass


class ColumnMappingError(DeliveryAnalyticsError):
    """Required column not found in source rows."""

    def __init__(self, missing_columns: list[str], available_columns: list[str]):
        self.missing_columns = missing_columns
        self.available_columns = available_columns
        super().__init__(
            f"Missing required columns: {missing_columns}. "
            f"Available: {available_columns[:10]}..."
        )


class ContractTermsError(DeliveryAnalyticsError):
    """Contract terms for a campaign are incomplete or unparsable."""

    def __init__(self, campaign_name: str, errors: list[dict[str, Any]] | str):
        self.campaign_name = campaign_name
        self.errors = errors
        detail = errors if isinstance(errors, str) else f"{len(errors)} invalid field(s)"
        super().__init__(f"Invalid contract terms for {campaign_name!r}: {detail}")
