from .experience import ExperienceAlignmentScorer
from .similarity import SimilarityScorer, cosine_similarity
from .skills import SkillExtractor, levenshtein_similarity, skill_coverage

__all__ = [
    "ExperienceAlignmentScorer",
    "SimilarityScorer",
    "SkillExtractor",
    "cosine_similarity",
    "levenshtein_similarity",
    "skill_coverage",
]
