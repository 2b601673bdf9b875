from .metrics import (
    average_sentence_length,
    calculate_flesch_kincaid,
    estimate_syllables,
    split_sentences,
    split_words,
    std_dev,
    variance,
)
from .detectors import Detector, KeywordDetector, RegexDetector
from .prose import ProseQualityAnalyzer, analyze_prose_quality
from .structure import StoryStructureAnalyzer, analyze_story_structure
from .hero_journey import (
    analyze_hero_journey,
    get_all_hero_journey_stages,
    get_hero_journey_stage_info,
)

__all__ = [
    "average_sentence_length",
    "calculate_flesch_kincaid",
    "estimate_syllables",
    "split_sentences",
    "split_words",
    "std_dev",
    "variance",
    "Detector",
    "KeywordDetector",
    "RegexDetector",
    "ProseQualityAnalyzer",
    "analyze_prose_quality",
    "StoryStructureAnalyzer",
    "analyze_story_structure",
    "analyze_hero_journey",
    "get_all_hero_journey_stages",
    "get_hero_journey_stage_info",
]
