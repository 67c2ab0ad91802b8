"""
Deterministic Resume-Job Keyword Matching

This package scores a resume against a job description by counting
category-weighted keyword hits:
1. Tokenization of both texts
2. Weighted scoring against a keyword taxonomy (skills x2, experience x1)

Usage:
    from matching import match_resume_to_job

    result = match_resume_to_job(resume_text, job_description)
    print(f"Match: {result.match_percentage}%")
"""

from .matcher import match_resume_to_job, get_default_taxonomy
from .scoring_engine import tokenize, compute_match, MatchResult
from .taxonomy import KeywordTaxonomy, TaxonomyError, load_taxonomy
from .config import CATEGORY_WEIGHTS, SCORING_MODES

__all__ = [
    "match_resume_to_job",
    "get_default_taxonomy",
    "tokenize",
    "compute_match",
    "MatchResult",
    "KeywordTaxonomy",
    "TaxonomyError",
    "load_taxonomy",
    "CATEGORY_WEIGHTS",
    "SCORING_MODES",
]
__version__ = "1.0.0"
