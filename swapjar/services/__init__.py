"""Service layer helpers"""

from .quotes import get_best_quote, transform_classic_quote

__all__ = ["get_best_quote", "transform_classic_quote"]
