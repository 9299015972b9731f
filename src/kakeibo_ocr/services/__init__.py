"""External collaborator interfaces, deadline-bounded calls and service factory."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from ..config import AppConfig

logger = logging.getLogger(__name__)


class ClassificationService(ABC):
    """Semantic classification backend: prompt in, raw text out."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Send one prompt and return the model's raw text response."""
        ...


class CategorySource(ABC):
    """Supplies a user's allowed category names."""

    @abstractmethod
    async def get_category_names(self, user_id: str) -> List[str]:
        ...


class StaticCategorySource(CategorySource):
    """Fixed category list plus optional per-user custom categories."""

    def __init__(self, categories: List[str], custom_categories: Optional[Dict[str, List[str]]] = None):
        self.categories = list(categories)
        self.custom_categories = custom_categories or {}

    async def get_category_names(self, user_id: str) -> List[str]:
        names = list(self.categories)
        for name in self.custom_categories.get(user_id, []):
            if name not in names:
                names.append(name)
        return names


@dataclass
class ServiceSuccess:
    text: str


@dataclass
class ServiceTimeout:
    timeout: float


@dataclass
class ServiceFailure:
    error: Exception


ServiceOutcome = Union[ServiceSuccess, ServiceTimeout, ServiceFailure]


def _discard_late_result(task: asyncio.Task):
    """Consume the outcome of a call that already lost its deadline."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Late classification call failed: {error}")
    else:
        logger.debug("Late classification response discarded")


async def call_with_deadline(service: ClassificationService, prompt: str, timeout: float) -> ServiceOutcome:
    """
    Race one service call against a timer.

    The timer only releases the caller; the underlying call keeps running
    and its late result is discarded.

    Args:
        service: Classification backend
        prompt: Prompt text
        timeout: Deadline in seconds

    Returns:
        ServiceSuccess, ServiceTimeout or ServiceFailure (never raises)
    """
    try:
        task = asyncio.ensure_future(service.generate(prompt))
    except Exception as e:
        return ServiceFailure(e)

    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task not in done:
        task.add_done_callback(_discard_late_result)
        return ServiceTimeout(timeout)

    error = task.exception()
    if error is not None:
        return ServiceFailure(error)

    text = task.result()
    if not isinstance(text, str):
        return ServiceFailure(TypeError(f"Service returned {type(text).__name__}, expected str"))
    return ServiceSuccess(text)


def create_classification_service(config: "AppConfig") -> Optional[ClassificationService]:
    """
    Create the external classification backend from configuration.

    Returns None when the backend is disabled or has no API key, in which
    case the classifier answers from its cache and local tiers only.
    """
    backend_name = config.classifier.backend

    if backend_name == "none":
        return None

    if backend_name == "gemini":
        if not config.gemini.api_key:
            logger.warning("GEMINI_API_KEY not configured, external classification disabled")
            return None

        from .gemini import GeminiClassificationService

        return GeminiClassificationService(
            api_key=config.gemini.api_key,
            model=config.gemini.model,
        )

    raise ValueError(f"Unknown classification backend: {backend_name!r} (choose gemini or none)")
