from .cleaner import apply_cleaning, parse_date, to_number
from .enricher import (
    add_day_of_week,
    add_identity,
    add_io_number,
    apply_spend_corrections,
    drop_test_campaigns,
    enrich,
)
from .loader import DeliveryIngestionPipeline, IngestedDelivery

__all__ = [
    "DeliveryIngestionPipeline",
    "IngestedDelivery",
    "add_day_of_week",
    "add_identity",
    "add_io_number",
    "apply_cleaning",
    "apply_spend_corrections",
    "drop_test_campaigns",
    "enrich",
    "parse_date",
    "to_number",
]
