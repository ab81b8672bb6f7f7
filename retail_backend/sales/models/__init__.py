# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS
"""

from .sale import Sale

__all__ = [
    "Sale",
]
