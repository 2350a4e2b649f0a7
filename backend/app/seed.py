import logging
from typing import Dict, List

from app.bank import QuestionBank
from app.storage.stores import QUESTIONS_KEY, Store, make_backend

logger = logging.getLogger(__name__)

INITIAL_QUESTIONS: List[Dict] = [
    {
        "id": "q_1_1",
        "type": "spelling_correction",
        "question": "Listen and spell out the word: 美食廣場 (f___ c___)",
        "options": None,
        "answer": "food court",
        "category": "Vocabulary",
        "original_text": "1. food court 美食廣場",
        "explanation": "Food court means a place with many small restaurants.",
    },
    {
        "id": "q_1_2",
        "type": "MCQ",
        "question": "She ____ to the park every Sunday.",
        "options": ["go", "goes", "going"],
        "answer": "goes",
        "category": "Grammar",
        "explanation": "Present simple third person singular uses 'goes'.",
    },
    {
        "id": "q_1_3",
        "type": "spelling_correction",
        "question": "Spell the word for a place where you watch movies: (c___m___)",
        "options": None,
        "answer": "cinema",
        "category": "Vocabulary",
        "original_text": "cinema 電影院",
        "explanation": "Cinema is where you go to see the latest movies on a big screen.",
    },
    {
        "id": "q_1_4",
        "type": "MCQ",
        "question": "We ____ playing football right now.",
        "options": ["is", "am", "are"],
        "answer": "are",
        "category": "Grammar",
        "explanation": "We use 'are' with plural subjects in present continuous.",
    },
    {
        "id": "q_1_5",
        "type": "spelling_correction",
        "question": "You use this to eat soup: (s___n)",
        "options": None,
        "answer": "spoon",
        "category": "Vocabulary",
        "explanation": "A spoon is a common kitchen utensil used for liquids.",
    },
]


def seed_bank(bank: QuestionBank) -> int:
    """Overwrite the bank with the starter questions."""
    added = bank.replace_all(INITIAL_QUESTIONS)
    logger.info("Seeded question bank with %d starter questions", len(added))
    return len(added)


def seed():
    store = Store(make_backend(), QUESTIONS_KEY, list)
    bank = QuestionBank(store)
    print(f"[seed] Bank had {len(bank)} questions")
    count = seed_bank(bank)
    print(f"[seed] Bank now has {count} questions")


if __name__ == "__main__":
    seed()
