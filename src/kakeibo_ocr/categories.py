"""Category name normalization against canonical and caller-supplied category sets."""

import logging
from typing import List, Optional, Sequence, Tuple, Any

from rapidfuzz import fuzz, process

from .rules import CategoryRules, get_default_rules, normalize_label, OTHER_CATEGORY

logger = logging.getLogger(__name__)

# Minimum rapidfuzz score for a correction candidate
SUGGESTION_CUTOFF = 60


def _as_allowed(allowed: Any, canonical: Sequence[str] = ()) -> Optional[List[str]]:
    """
    Coerce a caller's allowed names into an ordered list.

    Sets are ordered by canonical declaration order, then by name. Anything
    other than a list, tuple or set means no restriction.
    """
    if isinstance(allowed, (list, tuple)):
        return [name for name in allowed if isinstance(name, str)]
    if isinstance(allowed, (set, frozenset)):
        rank = {name: index for index, name in enumerate(canonical)}
        names = [name for name in allowed if isinstance(name, str)]
        return sorted(names, key=lambda name: (rank.get(name, len(rank)), name))
    return None


class CategoryNormalizer:
    """Map free-text category labels onto a canonical or allowed category."""

    def __init__(self, rules: Optional[CategoryRules] = None):
        self.rules = rules or get_default_rules()
        self._aliases = [(normalize_label(alias), category) for alias, category in self.rules.aliases]

    def normalize(self, input_name: Any, allowed: Any = None) -> str:
        """
        Resolve a category label.

        Order: allowed-set exact match, canonical exact match, alias table,
        keyword fallback rules, then その他. Every result goes through
        pick_available so it is a member of a non-empty allowed set.

        Args:
            input_name: Category label from a user, the classifier or old data
            allowed: Caller's category names; values other than a list, tuple or set
                mean unrestricted

        Returns:
            Category name (never raises)
        """
        allowed_names = _as_allowed(allowed, self.rules.canonical_categories)
        trimmed = input_name.strip() if isinstance(input_name, str) else ''

        if not trimmed:
            return self.pick_available(OTHER_CATEGORY, allowed_names)

        if allowed_names and trimmed in allowed_names:
            return trimmed

        if self.rules.is_canonical(trimmed):
            return self.pick_available(trimmed, allowed_names)

        norm = normalize_label(trimmed)
        for alias_norm, category in self._aliases:
            if alias_norm in norm:
                logger.debug(f"Alias '{alias_norm}' maps '{trimmed}' to {category}")
                return self.pick_available(category, allowed_names)

        for pattern, category in self.rules.fallback_rules:
            if pattern.search(trimmed):
                logger.debug(f"Keyword rule maps '{trimmed}' to {category}")
                return self.pick_available(category, allowed_names)

        return self.pick_available(OTHER_CATEGORY, allowed_names)

    def pick_available(self, target: str, allowed: Any = None) -> str:
        """Return target if permitted, else the closest permitted substitute."""
        allowed_names = _as_allowed(allowed, self.rules.canonical_categories)
        if not allowed_names:
            return target
        if target in allowed_names:
            return target

        for canonical in self.rules.canonical_categories:
            if canonical in allowed_names:
                return canonical

        if OTHER_CATEGORY in allowed_names:
            return OTHER_CATEGORY

        return allowed_names[0]

    def suggest(self, text: str, available: Optional[Sequence[str]] = None,
                limit: int = 3) -> List[Tuple[str, float]]:
        """
        Rank correction candidates for a free-text label.

        The normalized category comes first, followed by fuzzy matches.

        Args:
            text: Free-text label
            available: Candidate names (canonical categories by default)
            limit: Maximum number of suggestions

        Returns:
            List of (category, score in [0, 1])
        """
        if isinstance(available, (set, frozenset)):
            choices = _as_allowed(available, self.rules.canonical_categories)
        else:
            choices = _as_allowed(list(available) if available else None)
        choices = choices or list(self.rules.canonical_categories)
        text = text.strip() if isinstance(text, str) else ''

        best = self.normalize(text, choices)
        suggestions = [(best, fuzz.partial_ratio(text, best) / 100 if text else 0.0)]

        if text:
            for name, score, _ in process.extract(text, choices, scorer=fuzz.partial_ratio,
                                                  score_cutoff=SUGGESTION_CUTOFF, limit=limit + 1):
                if name != best:
                    suggestions.append((name, score / 100))

        return suggestions[:limit]


_default_normalizer: Optional[CategoryNormalizer] = None


def get_normalizer() -> CategoryNormalizer:
    global _default_normalizer
    if _default_normalizer is None:
        _default_normalizer = CategoryNormalizer()
    return _default_normalizer


def normalize_category_name(input_name: Any, allowed: Any = None) -> str:
    """Normalize with the bundled vocabulary."""
    return get_normalizer().normalize(input_name, allowed)


def pick_available(target: str, allowed: Any = None) -> str:
    return get_normalizer().pick_available(target, allowed)


def suggest_categories(text: str, available: Optional[Sequence[str]] = None,
                       limit: int = 3) -> List[Tuple[str, float]]:
    return get_normalizer().suggest(text, available, limit)
