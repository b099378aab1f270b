"""
Application constants and environment-driven configuration.
"""
import os

# Logging
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/quizgame"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"
LOG_DIR = os.getenv("QUIZGAME_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("QUIZGAME_LOG_FILE", "app.log")

# Database
DATABASE_URL = os.getenv("QUIZGAME_DATABASE_URL", "sqlite:///./quizgame.db")

# API
API_KEY = os.getenv("QUIZGAME_API_KEY", "your-secret-key-change-me")
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "QUIZGAME_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
    ).split(",")
    if origin.strip()
]

# Persisted layout (shared with browser save files)
STORAGE_PREFIX = "zsb_v2_"
USERS_REGISTRY_KEY = "zsb_users_db"

FIELD_COINS = "coins"
FIELD_INVENTORY = "inventory"
FIELD_EQUIPPED = "equipped"
FIELD_MISTAKES = "mistakes"
FIELD_TASKS = "tasks"
FIELD_LAST_LOGIN = "last_login"
FIELD_TUTORIAL_COMPLETE = "tutorial_complete"
FIELD_STATS = "stats"
FIELD_ACHIEVEMENTS = "achievements"

# Order matters: export bundles list fields in this order
USER_FIELDS = (
    FIELD_COINS,
    FIELD_INVENTORY,
    FIELD_EQUIPPED,
    FIELD_MISTAKES,
    FIELD_TASKS,
    FIELD_LAST_LOGIN,
    FIELD_TUTORIAL_COMPLETE,
    FIELD_STATS,
    FIELD_ACHIEVEMENTS,
)

SAVE_FORMAT_VERSION = 1

# Game tuning
GACHA_COST = 500
CORRECT_ANSWER_REWARD = 10
EXAM_SECONDS_PER_QUESTION = 120
FINISHED_SESSION_TTL_SECONDS = int(os.getenv("QUIZGAME_FINISHED_SESSION_TTL", "600"))
REVENGE_CONTEXT_LIMIT = 10
REVENGE_FALLBACK_CONTEXT = "General difficult questions"

# Quiz topics with special meaning
TOPIC_ALL = "all"
TOPIC_REVENGE = "revenge"

# Question sources
SOURCE_BANK = "bank"
SOURCE_AI = "ai"

# Quiz session states
SESSION_STATE_QUIZ = "quiz"
SESSION_STATE_RESULT = "result"
SESSION_STATE_ERROR = "error"

# Daily task ids
TASK_LOGIN = "login"
TASK_QUIZ = "quiz"
TASK_CORRECT = "correct"
TASK_STREAK = "streak"
TASK_NECROMANCER = "necromancer"
TASK_SCHOLAR = "scholar"

# Day key layout, same as JavaScript Date.toDateString()
DAY_KEY_FORMAT = "%a %b %d %Y"
