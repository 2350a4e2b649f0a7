import os
from dotenv import load_dotenv

load_dotenv()  # Load variables from .env file

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-nano")
# Worksheet photos need a vision-capable model
OPENAI_VISION_MODEL = os.getenv("OPENAI_VISION_MODEL", "gpt-4.1-mini")

# Persistence: "json" (one file per blob), "sql" (SQLAlchemy kv table) or "memory"
STORE_BACKEND = os.getenv("STORE_BACKEND", "json").strip().lower()
DATA_DIR = os.getenv("DATA_DIR", "data")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./kids_quiz.db")

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
]
ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("ALLOWED_ORIGINS", "").split(",")
    if o.strip()
] or DEFAULT_ALLOWED_ORIGINS

DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "ZH").strip().upper() or "ZH"

QUIZ_SIZE = int(os.getenv("QUIZ_SIZE", "10"))
AI_QUESTION_COUNT = int(os.getenv("AI_QUESTION_COUNT", "5"))
SHEETS_TIMEOUT = float(os.getenv("SHEETS_TIMEOUT", "20"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE")  # unset = console only
