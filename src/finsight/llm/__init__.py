"""LLM processing module."""
from .models import Insight
from .client import CompletionClient
from .insight_generator import InsightGenerator

__all__ = ["Insight", "CompletionClient", "InsightGenerator"]
