import os, sys
BASE = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BASE not in sys.path:
    sys.path.insert(0, BASE)
from app.bank import QuestionBank
from app.storage.stores import QUESTIONS_KEY, Store, make_backend
import pprint

def main():
    bank = QuestionBank(Store(make_backend(), QUESTIONS_KEY, list))
    pprint.pprint([
        {"id": q.id, "category": q.category, "type": q.type, "question": q.question}
        for q in bank.questions
    ])
    print(f"{len(bank)} questions:", dict(bank.categories()))

if __name__ == "__main__":
    main()
