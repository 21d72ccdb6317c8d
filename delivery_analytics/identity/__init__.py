"""Identity resolution: agency / advertiser / test flag from order names."""

from .cache import CacheEntry, ClassificationCache
from .io_numbers import (
    extract_io_number,
    extract_io_numbers,
    io_display_format,
    is_valid_io_number,
)
from .models import AgencyInfo, Identity
from .resolver import IdentityResolver
from .rules import PatternRule, RuleMatch, advertiser_rules, agency_rules, first_match

__all__ = [
    "AgencyInfo",
    "CacheEntry",
    "ClassificationCache",
    "Identity",
    "IdentityResolver",
    "PatternRule",
    "RuleMatch",
    "advertiser_rules",
    "agency_rules",
    "extract_io_number",
    "extract_io_numbers",
    "first_match",
    "io_display_format",
    "is_valid_io_number",
]
