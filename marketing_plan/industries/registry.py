"""Registry for the industry catalogue.

Loads industry definitions and category groupings from YAML and provides
lookup methods.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from .schemas import Industry

logger = logging.getLogger(__name__)

DEFINITIONS_DIR = Path(__file__).parent / "definitions"


class IndustryRegistry:
    """Loads and serves industry definitions."""

    def __init__(self, definitions_file: Optional[Path] = None) -> None:
        self._definitions_file = definitions_file or DEFINITIONS_DIR / "industries.yaml"
        self._industries: dict[str, Industry] = {}
        self._categories: dict[str, list[str]] = {}
        self._load()

    def _load(self) -> None:
        """Load industries from YAML file."""
        if not self._definitions_file.exists():
            logger.warning(f"Industries file not found: {self._definitions_file}")
            return

        with open(self._definitions_file) as f:
            data = yaml.safe_load(f) or {}

        for industry_data in data.get("industries", []):
            try:
                industry = Industry(**industry_data)
                self._industries[industry.id] = industry
            except Exception as e:
                logger.error(f"Failed to load industry: {e}")

        for category, ids in (data.get("categories") or {}).items():
            unknown = [i for i in ids if i not in self._industries]
            if unknown:
                logger.warning(f"Category '{category}' references unknown industries: {unknown}")
            self._categories[category] = [i for i in ids if i in self._industries]

        logger.info(
            f"Loaded {len(self._industries)} industries in {len(self._categories)} categories"
        )

    def get(self, industry_id: str) -> Optional[Industry]:
        """Get an industry by id."""
        return self._industries.get(industry_id)

    def list_all(self, category: Optional[str] = None) -> list[Industry]:
        """List industries in catalogue order; an unknown category yields []."""
        if category is None:
            return list(self._industries.values())
        ids = set(self._categories.get(category, []))
        return [i for i in self._industries.values() if i.id in ids]

    @property
    def categories(self) -> list[str]:
        return list(self._categories)

    @property
    def count(self) -> int:
        return len(self._industries)
