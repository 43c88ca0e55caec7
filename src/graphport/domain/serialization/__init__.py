"""Serialization side of the codec: records to an anonymized forest."""

from .registry import SurrogateIdRegistry
from .serializer import GraphSerializer

__all__ = ["GraphSerializer", "SurrogateIdRegistry"]
