"""
Main Matcher Module

Orchestrates the matching process:
1. Resolve the keyword taxonomy and scoring mode
2. Calculate the deterministic keyword match
3. Return the result with its breakdown
"""

import logging
from typing import Optional
from .config import DEFAULT_SCORING_MODE
from .scoring_engine import compute_match, MatchResult
from .taxonomy import KeywordTaxonomy

logger = logging.getLogger(__name__)

_DEFAULT_TAXONOMY: Optional[KeywordTaxonomy] = None


def get_default_taxonomy() -> KeywordTaxonomy:
    """Get or create the built-in taxonomy instance."""
    global _DEFAULT_TAXONOMY
    if _DEFAULT_TAXONOMY is None:
        _DEFAULT_TAXONOMY = KeywordTaxonomy.default()
    return _DEFAULT_TAXONOMY


def match_resume_to_job(
    resume_text: Optional[str],
    job_description: Optional[str],
    taxonomy: Optional[KeywordTaxonomy] = None,
    scoring_mode: Optional[str] = None
) -> MatchResult:
    """
    Calculate the keyword match between a resume and a job description.

    This is the main entry point for the matching system. It never raises:
    empty inputs produce a zero score with empty keyword lists.

    Args:
        resume_text: Full resume text
        job_description: Full job description text
        taxonomy: Optional keyword taxonomy (defaults to the built-in lists)
        scoring_mode: Optional scoring mode (defaults to config)

    Returns:
        MatchResult

    Example:
        >>> result = match_resume_to_job(resume_text, job_desc)
        >>> print(f"Match: {result.match_percentage}%")
        >>> print(f"Missing: {', '.join(result.missing_words)}")
    """
    taxonomy = taxonomy or get_default_taxonomy()
    scoring_mode = scoring_mode or DEFAULT_SCORING_MODE

    logger.info("=" * 60)
    logger.info("STARTING RESUME-JOB MATCHING")
    logger.info(
        f"Taxonomy: {len(taxonomy.skill_keywords)} skills, "
        f"{len(taxonomy.experience_keywords)} experience keywords, mode={scoring_mode}"
    )

    result = compute_match(resume_text, job_description, taxonomy, scoring_mode)

    logger.info(
        f"Matched {len(result.matched_words)} keywords, missing {len(result.missing_words)}"
    )
    logger.info(f"MATCHING COMPLETE - Score: {result.match_percentage}%")
    logger.info("=" * 60)

    return result
