"""YAML configuration loader."""

import os
import yaml
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class ClassifierConfig:
    backend: str = "gemini"
    timeout_seconds: float = 8.0
    result_ttl_seconds: float = 900
    category_ttl_seconds: float = 1800
    min_confidence: float = 0.4


@dataclass
class GeminiConfig:
    api_key: str = ""
    model: str = "gemini-1.5-flash"


@dataclass
class ReceiptConfig:
    fallback_threshold: float = 0.5
    store_scan_lines: int = 10


@dataclass
class AppConfig:
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    receipt: ReceiptConfig = field(default_factory=ReceiptConfig)
    # Empty means the default category list of the vocabulary file
    categories: List[str] = field(default_factory=list)
    custom_categories: Dict[str, List[str]] = field(default_factory=dict)
    default_category: Optional[str] = None
    rules_path: Optional[str] = None


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Load configuration from a YAML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The Gemini API key can come from the GEMINI_API_KEY environment variable.

    Raises:
        ValueError: If the file is not a YAML mapping
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, 'r', encoding='utf-8') as f:
                raw = yaml.safe_load(f) or {}
            if not isinstance(raw, dict):
                raise ValueError(f"Config file {p} must contain a mapping")
            logger.info(f"Loaded configuration from {p}")
        else:
            logger.warning(f"Config file {p} not found, using defaults")

    cls = raw.get("classifier", {}) or {}
    gem = raw.get("gemini", {}) or {}
    rct = raw.get("receipt", {}) or {}

    # Config file first, then environment
    gemini_api_key = gem.get("api_key", "") or os.environ.get("GEMINI_API_KEY", "")

    return AppConfig(
        classifier=ClassifierConfig(
            backend=cls.get("backend", "gemini"),
            timeout_seconds=float(cls.get("timeout_seconds", 8.0)),
            result_ttl_seconds=float(cls.get("result_ttl_seconds", 900)),
            category_ttl_seconds=float(cls.get("category_ttl_seconds", 1800)),
            min_confidence=float(cls.get("min_confidence", 0.4)),
        ),
        gemini=GeminiConfig(
            api_key=gemini_api_key,
            model=gem.get("model", "gemini-1.5-flash"),
        ),
        receipt=ReceiptConfig(
            fallback_threshold=float(rct.get("fallback_threshold", 0.5)),
            store_scan_lines=int(rct.get("store_scan_lines", 10)),
        ),
        categories=list(raw.get("categories") or []),
        custom_categories={
            str(user): list(names or [])
            for user, names in (raw.get("custom_categories") or {}).items()
        },
        default_category=raw.get("default_category"),
        rules_path=raw.get("rules_path"),
    )
