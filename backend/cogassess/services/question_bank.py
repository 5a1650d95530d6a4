"""
Static fallback question bank.

Served whenever content generation is unavailable (no API key) or fails.
Each domain carries a handful of multiple-choice items ordered from easy to
hard; callers ask for at most `count` of them.
"""
from typing import Dict, List

from cogassess.schemas.content import (
    ContentDomain,
    DifficultyLabel,
    GeneratedContent,
    GeneratedQuestion,
)

_DIFFICULTY_RANK = {
    DifficultyLabel.EASY: 1,
    DifficultyLabel.MEDIUM: 2,
    DifficultyLabel.HARD: 3,
}

# domain -> (title, instructions, [(rank, question fields)])
_BANK: Dict[ContentDomain, tuple] = {
    ContentDomain.MEMORY: (
        "Memory & Recall",
        "Read each item carefully, then answer from memory.",
        [
            (1, {
                "id": "memory-1",
                "type": "memory",
                "prompt": "Remember: RED, GREEN, BLUE, YELLOW. Which colour came second?",
                "options": ["Red", "Green", "Blue", "Yellow"],
                "correct_answer": "Green",
            }),
            (1, {
                "id": "memory-2",
                "type": "memory",
                "prompt": "Remember: DOG, PUPPY, CAT, KITTEN. Which word is paired with CAT?",
                "options": ["Dog", "Puppy", "Kitten", "Bird"],
                "correct_answer": "Kitten",
            }),
            (2, {
                "id": "memory-3",
                "type": "sequence",
                "prompt": "Remember: 7 3 9 1 5. What was the fourth number?",
                "options": ["9", "1", "5", "3"],
                "correct_answer": "1",
            }),
            (3, {
                "id": "memory-4",
                "type": "sequence",
                "prompt": "Remember: 8 2 6 4 9 1. Say the sequence backwards. Which number comes third?",
                "options": ["4", "9", "6", "2"],
                "correct_answer": "4",
            }),
        ],
    ),
    ContentDomain.ATTENTION: (
        "Attention & Focus",
        "Look closely and pick the answer that fits the rule.",
        [
            (1, {
                "id": "attention-1",
                "prompt": "How many times does the letter A appear in BANANA?",
                "options": ["2", "3", "4", "1"],
                "correct_answer": "3",
            }),
            (2, {
                "id": "attention-2",
                "prompt": "Which number is divisible by 3? 14, 22, 27, 31",
                "options": ["14", "22", "27", "31"],
                "correct_answer": "27",
            }),
            (2, {
                "id": "attention-3",
                "prompt": "Which word is spelled differently? LISTEN, LISTEN, LISTNE, LISTEN",
                "options": ["First", "Second", "Third", "Fourth"],
                "correct_answer": "Third",
            }),
            (3, {
                "id": "attention-4",
                "prompt": "Count the Es: THE EVENING BREEZE",
                "options": ["5", "6", "7", "8"],
                "correct_answer": "6",
            }),
        ],
    ),
    ContentDomain.PROCESSING: (
        "Processing Speed",
        "Answer each question as quickly as you can.",
        [
            (1, {
                "id": "processing-1",
                "prompt": "Which is bigger: 48 or 84?",
                "options": ["48", "84"],
                "correct_answer": "84",
            }),
            (1, {
                "id": "processing-2",
                "prompt": "6 + 7 = ?",
                "options": ["12", "13", "14", "11"],
                "correct_answer": "13",
            }),
            (2, {
                "id": "processing-3",
                "prompt": "Which shape has the most sides?",
                "options": ["Triangle", "Square", "Hexagon", "Pentagon"],
                "correct_answer": "Hexagon",
            }),
            (3, {
                "id": "processing-4",
                "prompt": "17 x 3 = ?",
                "options": ["41", "51", "47", "57"],
                "correct_answer": "51",
            }),
        ],
    ),
    ContentDomain.REASONING: (
        "Logical Reasoning",
        "Find the rule and choose the answer that follows it.",
        [
            (1, {
                "id": "reasoning-1",
                "type": "pattern",
                "prompt": "What comes next in the sequence? 2, 4, 8, 16, __",
                "options": ["24", "32", "20", "28"],
                "correct_answer": "32",
                "explanation": "Each number is multiplied by 2",
            }),
            (2, {
                "id": "reasoning-2",
                "prompt": "If all A are B, and some B are C, then:",
                "options": ["All A are C", "Some A might be C", "No A are C", "All C are A"],
                "correct_answer": "Some A might be C",
                "explanation": "This is a logical deduction problem",
            }),
            (2, {
                "id": "reasoning-3",
                "prompt": "Bird is to nest as bee is to __",
                "options": ["Flower", "Hive", "Honey", "Tree"],
                "correct_answer": "Hive",
            }),
        ],
    ),
    ContentDomain.SPATIAL: (
        "Spatial Awareness",
        "Picture each object in your mind before answering.",
        [
            (1, {
                "id": "spatial-1",
                "prompt": "An arrow points up. It turns a quarter turn clockwise. Where does it point?",
                "options": ["Up", "Right", "Down", "Left"],
                "correct_answer": "Right",
            }),
            (2, {
                "id": "spatial-2",
                "prompt": "How many faces does a cube have?",
                "options": ["4", "6", "8", "12"],
                "correct_answer": "6",
            }),
            (3, {
                "id": "spatial-3",
                "prompt": "Facing north, you turn right, then right again, then left. Which way do you face?",
                "options": ["North", "East", "South", "West"],
                "correct_answer": "East",
            }),
        ],
    ),
    ContentDomain.PROBLEM_SOLVING: (
        "Problem Solving",
        "Work out each problem and pick the best answer.",
        [
            (1, {
                "id": "pattern-1",
                "type": "pattern",
                "prompt": "What comes next in the sequence? 2, 4, 8, 16, __",
                "options": ["24", "32", "20", "28"],
                "correct_answer": "32",
                "explanation": "Each number is multiplied by 2",
            }),
            (2, {
                "id": "pattern-2",
                "type": "pattern",
                "prompt": "Complete: 1, 3, 6, 10, 15, __",
                "options": ["21", "20", "18", "19"],
                "correct_answer": "21",
                "explanation": "Add increasing numbers: +2, +3, +4, +5, +6",
            }),
            (2, {
                "id": "logic-1",
                "prompt": "If all A are B, and some B are C, then:",
                "options": ["All A are C", "Some A might be C", "No A are C", "All C are A"],
                "correct_answer": "Some A might be C",
                "explanation": "This is a logical deduction problem",
            }),
            (3, {
                "id": "sequence-1",
                "type": "sequence",
                "prompt": "Find the missing number: 3, 7, 15, 31, __",
                "options": ["63", "56", "47", "59"],
                "correct_answer": "63",
                "explanation": "Multiply by 2 and add 1",
            }),
        ],
    ),
    ContentDomain.LANGUAGE: (
        "Language Skills",
        "Read each question carefully and choose the best answer.",
        [
            (1, {
                "id": "language-1",
                "prompt": 'Which word means "to make something larger"?',
                "options": ["Expand", "Contract", "Reduce", "Minimize"],
                "correct_answer": "Expand",
            }),
            (1, {
                "id": "language-2",
                "prompt": "BIRD is to NEST as PERSON is to:",
                "options": ["Food", "House", "Car", "Tree"],
                "correct_answer": "House",
            }),
            (1, {
                "id": "language-3",
                "prompt": 'If someone is described as "meticulous", they are:',
                "options": ["Careless", "Extremely careful", "Quick", "Lazy"],
                "correct_answer": "Extremely careful",
            }),
            (1, {
                "id": "language-4",
                "prompt": 'What is the opposite of "abundant"?',
                "options": ["Scarce", "Plentiful", "Numerous", "Ample"],
                "correct_answer": "Scarce",
            }),
            (1, {
                "id": "language-5",
                "prompt": "LIGHT is to DARK as HAPPY is to:",
                "options": ["Bright", "Sad", "Joy", "Smile"],
                "correct_answer": "Sad",
            }),
            (2, {
                "id": "language-6",
                "prompt": 'Which word means "to speak in an evasive or deceiving way"?',
                "options": ["Equivocate", "Elaborate", "Elucidate", "Enumerate"],
                "correct_answer": "Equivocate",
            }),
            (3, {
                "id": "language-7",
                "prompt": 'A person who is "pragmatic" focuses primarily on:',
                "options": [
                    "Theoretical ideas",
                    "Practical results",
                    "Emotional responses",
                    "Artistic expression",
                ],
                "correct_answer": "Practical results",
            }),
        ],
    ),
}


def fallback_questions(
    domain: ContentDomain, difficulty: DifficultyLabel, count: int
) -> List[GeneratedQuestion]:
    """
    Up to `count` questions for a domain, easiest first.

    Items above the requested difficulty are skipped unless that would leave
    fewer than `count`, in which case the harder ones are appended.
    """
    _, _, items = _BANK[domain]
    rank = _DIFFICULTY_RANK[difficulty]
    within = [fields for r, fields in items if r <= rank]
    above = [fields for r, fields in items if r > rank]
    chosen = (within + above)[:count]
    return [GeneratedQuestion(**fields) for fields in chosen]


def fallback_content(
    domain: ContentDomain,
    difficulty: DifficultyLabel = DifficultyLabel.MEDIUM,
    count: int = 5,
) -> GeneratedContent:
    title, instructions, _ = _BANK[domain]
    return GeneratedContent(
        domain=domain,
        difficulty=difficulty,
        title=title,
        instructions=instructions,
        questions=fallback_questions(domain, difficulty, count),
        source="fallback",
    )
