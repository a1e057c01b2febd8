"""
Built-in sign dataset bundled with the service.

Common ASL signs with hand-shape proxy vectors. Always present in the
reference snapshot; stored datasets are merged on top of it.
"""
from typing import List

from ..shared.schemas import ReferenceEntry

BUILT_IN_SIGNS = [
    ("hello_1", "hello", [0.8, 0.9, 0.7, 0.85, 0.92], 0.95),
    ("thank_you_1", "thank you", [0.7, 0.8, 0.9, 0.75, 0.88], 0.92),
    ("please_1", "please", [0.85, 0.7, 0.8, 0.9, 0.82], 0.89),
    ("yes_1", "yes", [0.9, 0.85, 0.7, 0.8, 0.95], 0.94),
    ("no_1", "no", [0.6, 0.9, 0.8, 0.7, 0.85], 0.91),
    ("sorry_1", "sorry", [0.75, 0.8, 0.85, 0.9, 0.78], 0.87),
    ("help_1", "help", [0.8, 0.75, 0.9, 0.85, 0.88], 0.90),
    ("good_1", "good", [0.9, 0.8, 0.75, 0.95, 0.85], 0.93),
    ("bad_1", "bad", [0.7, 0.85, 0.8, 0.75, 0.9], 0.88),
    ("water_1", "water", [0.85, 0.9, 0.7, 0.8, 0.92], 0.89),
]

# Vocabulary the remote recognizer is asked to choose from
COMMON_SIGNS = [
    "hello", "thank you", "please", "yes", "no", "sorry", "help", "good", "bad",
    "water", "love", "family", "friend", "eat", "drink", "sleep", "work", "home",
    "school", "I", "you", "me", "we", "they", "what", "where", "when", "how", "why",
    "more", "stop", "go", "come", "sit", "stand", "walk", "run", "happy", "sad",
    "angry", "excited", "tired", "hungry", "thirsty", "hot", "cold", "big", "small",
    "fast", "slow", "beautiful", "new", "old", "young", "today", "tomorrow",
    "yesterday", "morning", "afternoon", "evening", "night",
]


def get_built_in_dataset() -> List[ReferenceEntry]:
    """Fresh list of the bundled reference entries."""
    return [
        ReferenceEntry(id=entry_id, label=label, features=features, confidence=confidence)
        for entry_id, label, features, confidence in BUILT_IN_SIGNS
    ]
