from . import debug, health, price, quote, stellar

__all__ = ["debug", "health", "price", "quote", "stellar"]
