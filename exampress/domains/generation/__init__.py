"""
Generation Domain - Exams and practice sets from topic descriptions.

This domain handles:
- Topic-based exam generation
- Practice sets with question illustrations
- Topic description rewriting
"""

from .contracts import ImageGenerator
from .generator import ExamGenerator
from .images import attach_images, questions_needing_images
from .models import Difficulty, ExamRequest, PracticeRequest, TopicOptimizationRequest

__all__ = [
    # Contracts
    "ImageGenerator",
    # Models
    "Difficulty",
    "ExamRequest",
    "PracticeRequest",
    "TopicOptimizationRequest",
    # Implementations
    "ExamGenerator",
    "attach_images",
    "questions_needing_images",
]
