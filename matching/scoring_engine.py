"""
Deterministic Scoring Engine

All scoring functions are deterministic - same inputs produce same outputs.
No AI/LLM is used in this module and nothing here performs I/O.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional, Tuple

from .config import (
    DEFAULT_SCORING_MODE, SCORING_MODES, SCORING_MODE_POSTING, MAX_PERCENTAGE
)
from .taxonomy import KeywordTaxonomy

logger = logging.getLogger(__name__)

# Anything that is not a letter or digit (underscore included) separates tokens
_SEPARATOR_RE = re.compile(r"[\W_]")


@dataclass(frozen=True)
class MatchResult:
    match_percentage: int
    matched_words: Tuple[str, ...] = field(default_factory=tuple)
    missing_words: Tuple[str, ...] = field(default_factory=tuple)
    skill_hits: int = 0
    experience_hits: int = 0
    total_weighted: float = 0
    max_possible: float = 0
    scoring_mode: str = DEFAULT_SCORING_MODE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_percentage": self.match_percentage,
            "matched_words": list(self.matched_words),
            "missing_words": list(self.missing_words),
            "breakdown": {
                "skill_hits": self.skill_hits,
                "experience_hits": self.experience_hits,
                "total_weighted": self.total_weighted,
                "max_possible": self.max_possible,
                "scoring_mode": self.scoring_mode,
            },
        }


def tokenize(text: Optional[str]) -> List[str]:
    """
    Split free text into lowercase word tokens.

    Punctuation becomes a separator, order and duplicates are preserved.

    Example:
        >>> tokenize("Node.js, React!")
        ['node', 'js', 'react']
    """
    if not text:
        return []
    return _SEPARATOR_RE.sub(" ", text.lower()).split()


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


def calculate_percentage(total_weighted: float, max_possible: float) -> int:
    """
    Convert weighted hits into a 0-100 integer percentage.

    Formula:
    - round(min(100, (total_weighted / max_possible) * 100))
    - 0 when max_possible is 0 (empty taxonomy)
    """
    if max_possible <= 0:
        logger.debug("Maximum possible weight is 0, score = 0")
        return 0

    percentage = min(MAX_PERCENTAGE, (total_weighted / max_possible) * 100)
    return max(0, min(MAX_PERCENTAGE, round_half_up(percentage)))


def calculate_posting_weight(jd_tokens: List[str], taxonomy: KeywordTaxonomy) -> float:
    """Weight of the distinct taxonomy keywords present in the job description."""
    distinct = set(jd_tokens)
    skills = sum(1 for token in distinct if taxonomy.is_skill(token))
    experience = sum(1 for token in distinct if taxonomy.is_experience(token))
    return skills * taxonomy.skill_weight + experience * taxonomy.experience_weight


def compute_match(
    resume_text: Optional[str],
    jd_text: Optional[str],
    taxonomy: KeywordTaxonomy,
    scoring_mode: str = DEFAULT_SCORING_MODE
) -> MatchResult:
    """
    Calculate the weighted keyword match between a resume and a job description.

    Every job-description token that belongs to the taxonomy is either matched
    (present in the resume) or missing. Repeated tokens count every time they
    appear; a keyword in both categories counts toward both weights.

    Formula:
    - total_weighted = skill_hits * skill_weight + experience_hits * experience_weight
    - max_possible (taxonomy mode) = |skills| * skill_weight + |experience| * experience_weight
    - max_possible (posting mode) = weight of distinct taxonomy keywords in the job description
    - match_percentage = round(min(100, total_weighted / max_possible * 100))

    Args:
        resume_text: Extracted resume text
        jd_text: Extracted job description text
        taxonomy: Keyword taxonomy to score against
        scoring_mode: "taxonomy" (default) or "posting"

    Returns:
        MatchResult with percentage, matched/missing keywords and breakdown
    """
    if scoring_mode not in SCORING_MODES:
        logger.warning(f"Unknown scoring mode {scoring_mode!r}, using {DEFAULT_SCORING_MODE!r}")
        scoring_mode = DEFAULT_SCORING_MODE

    resume_tokens = set(tokenize(resume_text))
    jd_tokens = tokenize(jd_text)

    skill_hits = 0
    experience_hits = 0
    # dicts keep first-seen order while de-duplicating
    matched: Dict[str, None] = {}
    missing: Dict[str, None] = {}

    for token in jd_tokens:
        in_resume = token in resume_tokens
        if taxonomy.is_skill(token):
            if in_resume:
                skill_hits += 1
                matched.setdefault(token, None)
            else:
                missing.setdefault(token, None)
        if taxonomy.is_experience(token):
            if in_resume:
                experience_hits += 1
                matched.setdefault(token, None)
            else:
                missing.setdefault(token, None)

    total_weighted = skill_hits * taxonomy.skill_weight + experience_hits * taxonomy.experience_weight

    if scoring_mode == SCORING_MODE_POSTING:
        max_possible = calculate_posting_weight(jd_tokens, taxonomy)
    else:
        max_possible = taxonomy.max_weight

    match_percentage = calculate_percentage(total_weighted, max_possible)

    logger.debug(
        f"Skill hits: {skill_hits}, experience hits: {experience_hits}, "
        f"weighted: {total_weighted}/{max_possible} ({scoring_mode})"
    )
    logger.info(f"Keyword match score: {match_percentage}%")

    return MatchResult(
        match_percentage=match_percentage,
        matched_words=tuple(matched),
        missing_words=tuple(missing),
        skill_hits=skill_hits,
        experience_hits=experience_hits,
        total_weighted=total_weighted,
        max_possible=max_possible,
        scoring_mode=scoring_mode,
    )
