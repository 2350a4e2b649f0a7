import os, sys
BASE = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BASE not in sys.path:
    sys.path.insert(0, BASE)
from app.bank import QuestionBank, QuestionNotFoundError
from app.storage.stores import QUESTIONS_KEY, Store, make_backend

def main():
    if len(sys.argv) < 2:
        print("Usage: prune_questions.py <question_id1> [<question_id2> ...]")
        print("       prune_questions.py --ai   (delete every AI generated question)")
        sys.exit(1)

    bank = QuestionBank(Store(make_backend(), QUESTIONS_KEY, list))

    if sys.argv[1] == "--ai":
        to_delete = [q.id for q in bank.questions if q.is_ai]
    else:
        to_delete = sys.argv[1:]
    print("🗑️  Will delete questions:", to_delete)

    for question_id in to_delete:
        try:
            bank.delete(question_id)
        except QuestionNotFoundError:
            print(f"   skipped {question_id} (not in bank)")

    print(f"✅  Deletion complete. {len(bank)} questions left.")

if __name__ == "__main__":
    main()
