"""Output rendering modules"""

from dupreview.output.review_formatter import ReviewFormatter

__all__ = ["ReviewFormatter"]
