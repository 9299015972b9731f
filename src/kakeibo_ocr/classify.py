"""Tiered expense category classification: cache, local keywords, external model."""

import time
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from .cache import TTLCache
from .categories import CategoryNormalizer
from .prompting import (
    ClassificationContext, build_classification_prompt, parse_classification_response,
)
from .rules import CategoryRules, get_default_rules, OTHER_CATEGORY
from .services import (
    CategorySource, ClassificationService, ServiceFailure, ServiceTimeout, call_with_deadline,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 8.0
RESULT_TTL_SECONDS = 15 * 60
CATEGORY_TTL_SECONDS = 30 * 60
LOCAL_CONFIDENCE = 0.8
DEFAULT_MODEL_CONFIDENCE = 0.5

# Caller acceptance threshold for classifier answers
DEFAULT_MIN_CONFIDENCE = 0.4


@dataclass
class ClassificationResult:
    """Category decision; category None means no opinion."""
    category: Optional[str]
    confidence: float
    reasoning: Optional[str] = None
    suggested_categories: List[Tuple[str, float]] = field(default_factory=list)
    tier: Optional[str] = None

    @classmethod
    def empty(cls, reasoning: Optional[str] = None) -> "ClassificationResult":
        return cls(category=None, confidence=0.0, reasoning=reasoning)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category,
            'confidence': self.confidence,
            'reasoning': self.reasoning,
            'suggested_categories': [
                {'name': name, 'confidence': confidence}
                for name, confidence in self.suggested_categories
            ],
            'tier': self.tier,
        }


class ClassificationStats:
    """Process-lifetime counters for external classification attempts."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.total_attempts = 0
        self.success_count = 0
        self.fallback_count = 0
        self.average_confidence = 0.0

    def record(self, success: bool, confidence: float = 0.0):
        self.total_attempts += 1
        if success:
            self.success_count += 1
            total = self.average_confidence * (self.success_count - 1) + confidence
            self.average_confidence = total / self.success_count
        else:
            self.fallback_count += 1

    def snapshot(self) -> Dict[str, Any]:
        return {
            'total_attempts': self.total_attempts,
            'success_count': self.success_count,
            'fallback_count': self.fallback_count,
            'average_confidence': self.average_confidence,
        }


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_MODEL_CONFIDENCE
    return max(0.0, min(1.0, float(value)))


class CategoryClassifier:
    """
    Classify expense descriptions into a user's categories.

    Tiers, in order: per-(user, description) result cache, local keyword
    map, external classification service under a deadline. The external
    answer is normalized against the user's categories before it is
    accepted. Failures at any tier produce ClassificationResult.empty()
    instead of raising.
    """

    def __init__(self,
                 service: Optional[ClassificationService] = None,
                 category_source: Optional[CategorySource] = None,
                 rules: Optional[CategoryRules] = None,
                 normalizer: Optional[CategoryNormalizer] = None,
                 result_cache: Optional[TTLCache] = None,
                 category_cache: Optional[TTLCache] = None,
                 stats: Optional[ClassificationStats] = None,
                 timeout: float = DEFAULT_TIMEOUT_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize classifier.

        Args:
            service: External classification backend (None disables the external tier)
            category_source: Supplies each user's category names
            rules: Category vocabulary (bundled file by default)
            normalizer: Category normalizer built on the same rules
            result_cache: Cache of classification results (15 minute TTL by default)
            category_cache: Cache of per-user category lists (30 minute TTL by default)
            stats: Shared statistics counters
            timeout: Deadline in seconds for one external call
            clock: Time source for the default caches
        """
        self.service = service
        self.category_source = category_source
        self.rules = rules or get_default_rules()
        self.normalizer = normalizer or CategoryNormalizer(self.rules)
        self.result_cache = result_cache or TTLCache(RESULT_TTL_SECONDS, clock=clock)
        self.category_cache = category_cache or TTLCache(CATEGORY_TTL_SECONDS, clock=clock)
        self.stats = stats or ClassificationStats()
        self.timeout = timeout

    @staticmethod
    def cache_key(user_id: str, description: str) -> Tuple[str, str]:
        return (user_id, (description or '').lower().strip())

    def classify_local(self, description: str) -> Optional[ClassificationResult]:
        """First category whose keyword occurs in the lower-cased description."""
        desc = (description or '').lower()
        for category, keywords in self.rules.fast_keywords.items():
            for keyword in keywords:
                if keyword.lower() in desc:
                    return ClassificationResult(
                        category=category,
                        confidence=LOCAL_CONFIDENCE,
                        reasoning='Fast local keyword matching',
                        tier='local',
                    )
        return None

    async def classify(self, user_id: str, description: str,
                       context: Optional[ClassificationContext] = None) -> ClassificationResult:
        """
        Classify one description.

        Args:
            user_id: Owner of the category list
            description: Free-text expense description
            context: Optional amount/store/time hints for the external tier

        Returns:
            ClassificationResult (category None when no tier produced an answer)
        """
        key = self.cache_key(user_id, description)

        cached = self.result_cache.get(key)
        if cached is not None:
            logger.info(f"Cache hit for classification: '{description}' -> {cached.category}")
            return cached

        local = self.classify_local(description)
        if local is not None:
            self.result_cache.set(key, local)
            logger.info(f"Fast local classification: '{description}' -> {local.category}")
            return local

        if self.service is None:
            logger.debug("No classification service configured")
            return ClassificationResult.empty()

        try:
            return await self._classify_external(user_id, description, context, key)
        except Exception as e:
            logger.error(f"Classification error for '{description}': {e}")
            self.stats.record(False)
            return ClassificationResult.empty()

    async def _classify_external(self, user_id: str, description: str,
                                 context: Optional[ClassificationContext],
                                 key: Tuple[str, str]) -> ClassificationResult:
        category_names = await self.get_category_names(user_id)
        context = context or ClassificationContext(description=description)
        prompt = build_classification_prompt(context, category_names, self.rules)

        outcome = await call_with_deadline(self.service, prompt, self.timeout)
        if isinstance(outcome, ServiceTimeout):
            logger.warning(f"Classification timed out after {outcome.timeout}s for '{description}'")
            self.stats.record(False)
            return ClassificationResult.empty()
        if isinstance(outcome, ServiceFailure):
            logger.error(f"Classification service error: {outcome.error}")
            self.stats.record(False)
            return ClassificationResult.empty()

        text = outcome.text
        logger.debug(f"Classification response for '{description}': {text}")

        try:
            parsed = parse_classification_response(text)
        except ValueError as e:
            logger.error(f"Failed to parse classification response: {e}; raw response: {text!r}")
            self.stats.record(False)
            return ClassificationResult.empty()

        raw_category = parsed.get('category')
        if not isinstance(raw_category, str) or not raw_category.strip():
            logger.warning(f"Classifier returned no usable category: {raw_category!r}")
            self.stats.record(False)
            return ClassificationResult.empty()

        category = self.normalizer.normalize(raw_category, category_names)
        if category not in category_names:
            logger.warning(f"Classifier suggested invalid category: {raw_category}")
            self.stats.record(False)
            return ClassificationResult.empty()

        result = ClassificationResult(
            category=category,
            confidence=_coerce_confidence(parsed.get('confidence')),
            reasoning=parsed.get('reasoning') or 'Gemini AI classification',
            suggested_categories=self._suggestions(parsed, raw_category, category, category_names),
            tier='external',
        )

        self.result_cache.set(key, result)
        self.stats.record(True, result.confidence)
        logger.info(f"External classification: '{description}' -> {category} "
                    f"(confidence: {result.confidence:.2f})")
        return result

    def _suggestions(self, parsed: Dict[str, Any], raw_category: str, category: str,
                     category_names: List[str]) -> List[Tuple[str, float]]:
        suggestions = []
        raw_suggestions = parsed.get('suggestedCategories') or parsed.get('suggested_categories')
        if isinstance(raw_suggestions, list):
            for entry in raw_suggestions:
                if isinstance(entry, dict) and entry.get('name') in category_names:
                    suggestions.append((entry['name'], _coerce_confidence(entry.get('confidence'))))

        if not suggestions:
            suggestions = self.normalizer.suggest(raw_category, category_names)

        return [(name, score) for name, score in suggestions if name != category]

    async def get_category_names(self, user_id: str) -> List[str]:
        """User's category names (cached), falling back to the default list."""
        cached = self.category_cache.get(user_id)
        if cached is not None:
            logger.debug(f"Using cached categories for user {user_id} ({len(cached)} categories)")
            return cached

        if self.category_source is None:
            return list(self.rules.default_categories)

        try:
            names = await self.category_source.get_category_names(user_id)
        except Exception as e:
            logger.warning(f"Failed to get categories, using default categories: {e}")
            return list(self.rules.default_categories)

        names = [name for name in (names or []) if isinstance(name, str) and name]
        if not names:
            logger.warning("No categories available, using default categories")
            return list(self.rules.default_categories)

        self.category_cache.set(user_id, names)
        logger.info(f"Fetched and cached {len(names)} categories for user {user_id}")
        return names


def fallback_classification(context: ClassificationContext,
                            rules: Optional[CategoryRules] = None) -> ClassificationResult:
    """Deterministic tier: store name pattern, then description keywords, then その他."""
    rules = rules or get_default_rules()

    if context.store_name:
        for pattern, category in rules.store_category_patterns:
            if pattern.search(context.store_name):
                return ClassificationResult(
                    category=category,
                    confidence=0.7,
                    reasoning=f"店舗名「{context.store_name}」から推定",
                    tier='fallback',
                )

    description = (context.description or '').lower()
    for keyword, category in rules.heuristic_keywords:
        if keyword.lower() in description:
            return ClassificationResult(
                category=category,
                confidence=0.5,
                reasoning=f"キーワード「{keyword}」から推定",
                tier='fallback',
            )

    return ClassificationResult(
        category=OTHER_CATEGORY,
        confidence=0.3,
        reasoning='明確な手がかりがないためデフォルトカテゴリを使用',
        tier='default',
    )


async def resolve_category(classifier: CategoryClassifier,
                           user_id: str,
                           context: ClassificationContext,
                           available: Optional[List[str]] = None,
                           min_confidence: float = DEFAULT_MIN_CONFIDENCE,
                           default_category: Optional[str] = None) -> ClassificationResult:
    """
    Apply a caller acceptance policy on top of the classifier.

    The classifier answer is used when it has a category with confidence of at
    least min_confidence; otherwise the deterministic fallback when it finds a
    concrete category; otherwise the user's default; otherwise その他.

    Args:
        classifier: Tiered classifier
        user_id: Owner of the category list
        context: Expense description and hints
        available: Allowed category names for the final answer
        min_confidence: Acceptance threshold for classifier answers
        default_category: User-chosen default category

    Returns:
        ClassificationResult with a non-null category
    """
    result = await classifier.classify(user_id, context.description, context)

    if result.category is None or result.confidence < min_confidence:
        logger.info(f"Classification below threshold ({result.confidence:.2f} < {min_confidence}), "
                    f"falling back to keywords")
        fallback = fallback_classification(context, classifier.rules)
        if fallback.category != OTHER_CATEGORY:
            result = fallback
        elif default_category:
            result = ClassificationResult(
                category=default_category,
                confidence=fallback.confidence,
                reasoning='ユーザー設定のデフォルトカテゴリ',
                tier='default',
            )
        else:
            result = fallback

    if available:
        normalized = classifier.normalizer.normalize(result.category, available)
        if normalized != result.category:
            result = replace(result, category=normalized)

    return result
