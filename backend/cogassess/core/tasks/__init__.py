"""
Task scorers. Each turns timestamped interactions into a TestResult.
"""
from cogassess.core.tasks.base import BaseTask
from cogassess.core.tasks.focus import FocusTask
from cogassess.core.tasks.language import LanguageTask
from cogassess.core.tasks.learning_grasp import LearningGraspTask
from cogassess.core.tasks.pattern_building import PatternBuildingTask
from cogassess.core.tasks.pattern_matching import PatternMatchingTask
from cogassess.core.tasks.question_quiz import QuestionQuizTask
from cogassess.core.tasks.reaction_time import ReactionTimeTask
from cogassess.core.tasks.selective_attention import SelectiveAttentionTask
from cogassess.core.tasks.sequence_memory import SequenceMemoryTask
from cogassess.core.tasks.sustained_attention import SustainedAttentionTask

__all__ = [
    "BaseTask",
    "FocusTask",
    "LanguageTask",
    "LearningGraspTask",
    "PatternBuildingTask",
    "PatternMatchingTask",
    "QuestionQuizTask",
    "ReactionTimeTask",
    "SelectiveAttentionTask",
    "SequenceMemoryTask",
    "SustainedAttentionTask",
]
