"""Receipt format registry for major chains."""

from .template_engine import StoreFormatRegistry
from .base_template import StoreFormat, StoreMatch

__all__ = ['StoreFormatRegistry', 'StoreFormat', 'StoreMatch']
