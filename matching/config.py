"""
Configuration for the keyword-overlap resume matching system.
Adjust keyword lists and weights here.
"""

# Category weights applied to keyword hits
CATEGORY_WEIGHTS = {
    "skills": 2,
    "experience": 1,
}

# Technical skills recognized in job descriptions.
# "node.js" can never survive tokenization but still counts toward the
# maximum possible score.
SKILL_KEYWORDS = [
    "javascript",
    "react",
    "node",
    "nodejs",
    "node.js",
    "typescript",
    "html",
    "css",
    "redux",
    "mongodb",
    "express",
    "next",
    "nextjs",
    "rest",
    "api",
    "restful",
    "docker",
    "kubernetes",
]

# Experience verbs and nouns recognized in job descriptions
EXPERIENCE_KEYWORDS = [
    "experience",
    "projects",
    "built",
    "maintained",
    "developed",
    "implemented",
    "designed",
]

# Scoring modes
# "taxonomy": normalize against the whole taxonomy (default)
# "posting": normalize against the taxonomy keywords present in the job description
SCORING_MODE_TAXONOMY = "taxonomy"
SCORING_MODE_POSTING = "posting"
SCORING_MODES = (SCORING_MODE_TAXONOMY, SCORING_MODE_POSTING)
DEFAULT_SCORING_MODE = SCORING_MODE_TAXONOMY

# Upper bound of the match percentage
MAX_PERCENTAGE = 100
