"""
Keyword Taxonomy

The fixed set of recognized skill/experience keywords and their category
weights. A taxonomy is immutable once built and is passed explicitly into
the scoring engine.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Tuple, Dict, Any, Union

from .config import SKILL_KEYWORDS, EXPERIENCE_KEYWORDS, CATEGORY_WEIGHTS

logger = logging.getLogger(__name__)


class TaxonomyError(ValueError):
    """Raised when a taxonomy definition cannot be loaded or is invalid."""


def _normalize_keywords(keywords: Iterable[str]) -> Tuple[str, ...]:
    """Lowercase, strip and de-duplicate keywords, keeping first occurrence order."""
    seen = {}
    for keyword in keywords or ():
        if not isinstance(keyword, str):
            raise TaxonomyError(f"Keyword must be a string, got {type(keyword).__name__}")
        cleaned = keyword.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


@dataclass(frozen=True)
class KeywordTaxonomy:
    skill_keywords: Tuple[str, ...] = field(default_factory=tuple)
    experience_keywords: Tuple[str, ...] = field(default_factory=tuple)
    skill_weight: int = CATEGORY_WEIGHTS["skills"]
    experience_weight: int = CATEGORY_WEIGHTS["experience"]

    def __post_init__(self):
        object.__setattr__(self, "skill_keywords", _normalize_keywords(self.skill_keywords))
        object.__setattr__(self, "experience_keywords", _normalize_keywords(self.experience_keywords))

        for name in ("skill_weight", "experience_weight"):
            weight = getattr(self, name)
            if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight < 0:
                raise TaxonomyError(f"{name} must be a non-negative number, got {weight!r}")

        # Lookup sets; not part of equality or repr
        object.__setattr__(self, "_skill_set", frozenset(self.skill_keywords))
        object.__setattr__(self, "_experience_set", frozenset(self.experience_keywords))

        overlap = self._skill_set & self._experience_set
        if overlap:
            logger.warning(
                f"Keywords in both categories will count toward both weights: {sorted(overlap)}"
            )

    def is_skill(self, token: str) -> bool:
        return token in self._skill_set

    def is_experience(self, token: str) -> bool:
        return token in self._experience_set

    @property
    def max_weight(self) -> float:
        """Total weight of every keyword in the taxonomy."""
        return (
            len(self.skill_keywords) * self.skill_weight
            + len(self.experience_keywords) * self.experience_weight
        )

    def is_empty(self) -> bool:
        return not self.skill_keywords and not self.experience_keywords

    def to_dict(self) -> Dict[str, Any]:
        return {
            "skills": list(self.skill_keywords),
            "experience": list(self.experience_keywords),
            "weights": {
                "skills": self.skill_weight,
                "experience": self.experience_weight,
            },
        }

    @classmethod
    def default(cls) -> "KeywordTaxonomy":
        """Taxonomy built from the keyword lists in config."""
        return cls(
            skill_keywords=tuple(SKILL_KEYWORDS),
            experience_keywords=tuple(EXPERIENCE_KEYWORDS),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeywordTaxonomy":
        """
        Build a taxonomy from a mapping.

        Expected shape:
            {
                "skills": ["react", "docker"],
                "experience": ["built"],
                "weights": {"skills": 2, "experience": 1}  # optional
            }
        """
        if not isinstance(data, dict):
            raise TaxonomyError("Taxonomy definition must be a JSON object")

        skills = data.get("skills", [])
        experience = data.get("experience", [])
        if not isinstance(skills, list) or not isinstance(experience, list):
            raise TaxonomyError("'skills' and 'experience' must be lists of strings")

        weights = data.get("weights") or {}
        if not isinstance(weights, dict):
            raise TaxonomyError("'weights' must be an object")

        return cls(
            skill_keywords=tuple(skills),
            experience_keywords=tuple(experience),
            skill_weight=weights.get("skills", CATEGORY_WEIGHTS["skills"]),
            experience_weight=weights.get("experience", CATEGORY_WEIGHTS["experience"]),
        )


def load_taxonomy(path: Union[str, Path]) -> KeywordTaxonomy:
    """
    Load a taxonomy from a JSON file.

    Raises:
        TaxonomyError: If the file is missing, unreadable or malformed
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise TaxonomyError(f"Taxonomy file not found: {path}")
    except (OSError, json.JSONDecodeError) as e:
        raise TaxonomyError(f"Could not read taxonomy file {path}: {e}") from e

    taxonomy = KeywordTaxonomy.from_dict(data)
    logger.info(
        f"Loaded taxonomy from {path}: {len(taxonomy.skill_keywords)} skills, "
        f"{len(taxonomy.experience_keywords)} experience keywords"
    )
    return taxonomy
