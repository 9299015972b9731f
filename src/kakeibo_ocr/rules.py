"""Loading and validation of the category vocabulary file."""

import re
import yaml
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Tuple, Any

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / 'data' / 'categories.yml'

OTHER_CATEGORY = 'その他'


def normalize_label(text: Optional[str]) -> str:
    """Remove whitespace, drop a trailing 費 and lower-case."""
    text = re.sub(r'\s+', '', text or '')
    text = re.sub(r'費$', '', text)
    return text.lower()


@dataclass
class AmountHint:
    min_amount: int
    max_amount: int
    categories: List[str]


@dataclass
class TimeHint:
    start_hour: int
    end_hour: int
    categories: List[str]


@dataclass
class CategoryRules:
    """Ordered, first-match-wins category tables."""
    canonical_categories: List[str]
    default_categories: List[str]
    aliases: List[Tuple[str, str]]
    fallback_rules: List[Tuple[Pattern, str]]
    fast_keywords: Dict[str, List[str]]
    heuristic_keywords: List[Tuple[str, str]]
    store_category_patterns: List[Tuple[Pattern, str]]
    item_keywords: Dict[str, List[str]]
    amount_hints: List[AmountHint] = field(default_factory=list)
    time_hints: List[TimeHint] = field(default_factory=list)
    pharmacy_store_keywords: List[str] = field(default_factory=list)
    fuel_store_keywords: List[str] = field(default_factory=list)

    def is_canonical(self, name: str) -> bool:
        return name in self.canonical_categories


def _require(data: Dict[str, Any], key: str) -> Any:
    if key not in data or data[key] is None:
        raise ValueError(f"Category rules missing '{key}'")
    return data[key]


def _check_target(category: str, canonical: List[str], section: str):
    if category not in canonical:
        raise ValueError(f"{section}: '{category}' is not a canonical category")


def parse_rules(data: Dict[str, Any]) -> CategoryRules:
    """
    Build CategoryRules from the raw YAML mapping.

    Args:
        data: Parsed YAML document

    Returns:
        Validated CategoryRules

    Raises:
        ValueError: If a table targets a non-canonical label or an alias repeats
    """
    if not isinstance(data, dict):
        raise ValueError("Category rules must be a mapping")

    canonical = [str(c) for c in _require(data, 'canonical_categories')]
    if not canonical or canonical[-1] != OTHER_CATEGORY:
        raise ValueError(f"'{OTHER_CATEGORY}' must be the last canonical category")

    defaults = [str(c) for c in data.get('default_categories') or canonical]

    aliases = []
    seen_aliases: Dict[str, str] = {}
    for alias, category in _require(data, 'aliases').items():
        alias = str(alias)
        _check_target(category, canonical, 'aliases')
        alias_norm = normalize_label(alias)
        if not alias_norm:
            raise ValueError(f"aliases: '{alias}' is empty after normalization")
        if alias_norm in seen_aliases:
            raise ValueError(f"aliases: '{alias}' duplicates '{seen_aliases[alias_norm]}'")
        seen_aliases[alias_norm] = alias
        aliases.append((alias, category))

    fallback_rules = []
    for rule in _require(data, 'fallback_rules'):
        _check_target(rule['category'], canonical, 'fallback_rules')
        flags = re.IGNORECASE if rule.get('ignore_case') else 0
        fallback_rules.append((re.compile(rule['pattern'], flags), rule['category']))

    fast_keywords = {}
    for category, keywords in _require(data, 'fast_keywords').items():
        _check_target(category, canonical, 'fast_keywords')
        fast_keywords[category] = [str(k) for k in keywords]

    heuristic_keywords = []
    for keyword, category in (data.get('heuristic_keywords') or {}).items():
        _check_target(category, canonical, 'heuristic_keywords')
        heuristic_keywords.append((str(keyword), category))

    store_patterns = []
    for entry in data.get('store_category_patterns') or []:
        _check_target(entry['category'], canonical, 'store_category_patterns')
        store_patterns.append((re.compile(entry['pattern'], re.IGNORECASE), entry['category']))

    item_keywords = {}
    for category, keywords in (data.get('item_keywords') or {}).items():
        _check_target(category, canonical, 'item_keywords')
        item_keywords[category] = [str(k) for k in keywords]

    amount_hints = []
    for hint in data.get('amount_hints') or []:
        for category in hint['categories']:
            _check_target(category, canonical, 'amount_hints')
        amount_hints.append(AmountHint(int(hint['min']), int(hint['max']), list(hint['categories'])))

    time_hints = []
    for hint in data.get('time_hints') or []:
        for category in hint['categories']:
            _check_target(category, canonical, 'time_hints')
        time_hints.append(TimeHint(int(hint['start_hour']), int(hint['end_hour']), list(hint['categories'])))

    store_hints = data.get('store_hints') or {}

    return CategoryRules(
        canonical_categories=canonical,
        default_categories=defaults,
        aliases=aliases,
        fallback_rules=fallback_rules,
        fast_keywords=fast_keywords,
        heuristic_keywords=heuristic_keywords,
        store_category_patterns=store_patterns,
        item_keywords=item_keywords,
        amount_hints=amount_hints,
        time_hints=time_hints,
        pharmacy_store_keywords=[str(k) for k in store_hints.get('pharmacy', [])],
        fuel_store_keywords=[str(k) for k in store_hints.get('fuel', [])],
    )


def load_rules(rules_path: Optional[Path] = None) -> CategoryRules:
    """Load category rules from YAML file (bundled file by default)."""
    rules_path = Path(rules_path) if rules_path else DEFAULT_RULES_PATH
    try:
        with open(rules_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to load category rules from {rules_path}: {e}")
        raise

    rules = parse_rules(data)
    logger.info(f"Loaded {len(rules.canonical_categories)} categories and {len(rules.aliases)} aliases")
    return rules


@lru_cache(maxsize=1)
def get_default_rules() -> CategoryRules:
    """Bundled rules, loaded once per process."""
    return load_rules()
