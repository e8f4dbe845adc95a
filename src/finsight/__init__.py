"""FinSight: transaction analytics and AI financial insights."""
from .models import Transaction

__version__ = "0.1.0"

__all__ = ["Transaction", "__version__"]
