"""Industry catalogue: YAML definitions, schemas and registry."""

from .registry import IndustryRegistry
from .schemas import Industry

__all__ = ["IndustryRegistry", "Industry"]
