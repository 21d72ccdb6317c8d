"""Ordered pattern rule tables for campaign order names.

Order names look like ``"2001567: MJ: Acme-Fall-250901"`` but years of manual
entry produced many variants. Each cascade is an ordered tuple of
``PatternRule``; the first rule that matches and yields a non-empty value wins.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..config import ResolverConfig

Matcher = Callable[[str], "re.Match[str] | None"]
Extractor = Callable[["re.Match[str]"], str]


@dataclass(frozen=True)
class PatternRule:
    """Single named extraction rule: a matcher plus what to pull out of the match."""

    name: str
    matcher: Matcher
    extractor: Extractor

    def apply(self, text: str) -> str | None:
        """Extracted value (stripped), or None if the rule does not apply."""
        match = self.matcher(text)
        if match is None:
            return None
        value = self.extractor(match).strip()
        return value or None


@dataclass(frozen=True)
class RuleMatch:
    """Which rule fired and what it extracted."""

    rule: str
    value: str


def first_match(rules: Iterable[PatternRule], text: str) -> RuleMatch | None:
    """Evaluate rules in order; first match wins."""
    for rule in rules:
        value = rule.apply(text)
        if value is not None:
            return RuleMatch(rule=rule.name, value=value)
    return None


def _group(index: int) -> Extractor:
    return lambda match: match.group(index) or ""


def _constant(value: str) -> Extractor:
    return lambda _match: value


def _literal(substring: str) -> Matcher:
    return re.compile(re.escape(substring)).search


def _abbreviation_alternation(abbreviations: Iterable[str]) -> str:
    # Longest first so "FLWR" is never shadowed by a shorter prefix.
    ordered = sorted(set(abbreviations), key=lambda a: (-len(a), a))
    return "|".join(re.escape(a) for a in ordered)


def agency_rules(config: ResolverConfig) -> tuple[PatternRule, ...]:
    """Agency abbreviation cascade, highest priority first."""
    rules = [
        PatternRule(
            name=f"override:{override.contains}",
            matcher=_literal(override.contains),
            extractor=_constant(override.abbreviation),
        )
        for override in config.agency_overrides
    ]

    rules.append(
        PatternRule(
            name="awaiting_io",
            matcher=re.compile(r"^Awaiting IO:\s*([^:]+):").match,
            extractor=_group(1),
        )
    )

    # "2001234: WWX-Client-..." or "...-WWX-..." carry no agency colon segment
    for token in config.special_agency_tokens:
        escaped = re.escape(token)
        rules.append(
            PatternRule(
                name=f"special_token:{token}",
                matcher=re.compile(rf"^\d+:?\s*{escaped}-|-{escaped}-").search,
                extractor=_constant(token),
            )
        )

    rules.extend(
        [
            PatternRule(
                name="dual_io",
                matcher=re.compile(r"^\d+\s*/\s*\d+:\s*([^:]+):").match,
                extractor=_group(1),
            ),
            PatternRule(
                name="io_spaced",
                matcher=re.compile(r"^\d+:\s+([^:]+):").match,
                extractor=_group(1),
            ),
            PatternRule(
                name="io_compact",
                matcher=re.compile(r"^\d+:([^:]+):").match,
                extractor=_group(1),
            ),
            PatternRule(
                name="before_first_colon",
                matcher=re.compile(r"^([^:]+):").match,
                extractor=_group(1),
            ),
        ]
    )
    return tuple(rules)


def advertiser_rules(config: ResolverConfig) -> tuple[PatternRule, ...]:
    """Advertiser cascade: text after the agency token, before the first hyphen."""
    rules = [
        PatternRule(
            name=f"override:{override.contains}",
            matcher=_literal(override.contains),
            extractor=_constant(override.advertiser),
        )
        for override in config.advertiser_overrides
    ]

    rules.extend(
        [
            PatternRule(
                name="awaiting_io",
                matcher=re.compile(r"^Awaiting IO:\s*[^:]+:\s*([^-]+)").match,
                extractor=_group(1),
            ),
            PatternRule(
                name="io_spaced",
                matcher=re.compile(r"^\d+(?:\s*/\s*\d+)?:\s*[^:]+:\s*([^-]+)").match,
                extractor=_group(1),
            ),
            PatternRule(
                name="io_compact",
                matcher=re.compile(r"^\d+(?:/\d+)?:[^:]+:([^-]+)").match,
                extractor=_group(1),
            ),
        ]
    )

    if config.agencies:
        known = _abbreviation_alternation(config.agencies)
        rules.extend(
            [
                PatternRule(
                    name="known_abbreviation",
                    matcher=re.compile(rf"(?:{known}):\s+(.*?)(?=-)", re.IGNORECASE).search,
                    extractor=_group(1),
                ),
                PatternRule(
                    name="hyphen_split",
                    matcher=re.compile(rf"^(?:{known}):([^-]*)-").match,
                    extractor=_group(1),
                ),
            ]
        )
    return tuple(rules)
