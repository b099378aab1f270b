from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from enum import Enum
from typing import Dict, List, Optional


class CamelModel(BaseModel):
    """Base for persisted records; serialized with camelCase keys like browser saves"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(CamelModel):
    id: str
    username: str
    created_at: int  # epoch milliseconds


class TaskDifficulty(str, Enum):
    EASY = "EASY"
    NORMAL = "NORMAL"
    HARD = "HARD"
    NIGHTMARE = "NIGHTMARE"


class DailyTask(CamelModel):
    id: str
    title: str
    desc: str = ""
    target: int = Field(ge=1)
    current: int = 0
    reward: int = Field(ge=0)
    claimed: bool = False
    difficulty: TaskDifficulty


class ConditionType(str, Enum):
    TOTAL_CORRECT = "total_correct"
    TOTAL_ANSWERED = "total_answered"
    TOTAL_COINS = "total_coins"
    MISTAKES_CLEARED = "mistakes_cleared"
    STREAK_RECORD = "streak_record"


class Achievement(CamelModel):
    id: str
    title: str
    desc: str = ""
    condition_type: ConditionType
    target_value: int


class AchievementProgress(CamelModel):
    achievement: Achievement
    unlocked: bool
    current_value: int
    percent: float


class Rarity(str, Enum):
    R = "R"
    SR = "SR"
    SSR = "SSR"


class Artifact(CamelModel):
    id: str
    name: str
    desc: str = ""
    rarity: Rarity
    bonus: int = 0


class UserStats(CamelModel):
    total_correct: int = 0
    total_answered: int = 0
    mistakes_cleared: int = 0
    max_streak: int = 0


class Question(CamelModel):
    question: str
    options: List[str]
    correct_index: int
    explanation: str = ""
    id: Optional[str] = None


class MistakeRecord(Question):
    subject_id: str
    added_at: int  # epoch milliseconds


class Subject(CamelModel):
    id: str
    name: str
    prompt_name: str
    desc: str = ""
    topics: List[str] = []
    keywords: Dict[str, List[str]] = {}


class QuizConfig(CamelModel):
    question_count: int = Field(default=5, ge=1, le=50)
    topic: str = "all"
    is_exam: bool = False
    context_data: Optional[str] = None


# === HTTP request / response schemas ===

class UsernameRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)


class EquipRequest(BaseModel):
    artifact_id: Optional[str] = None


class ProgressionResponse(BaseModel):
    coins: int
    inventory: List[str]
    equipped: Optional[str] = None


class ClaimResponse(BaseModel):
    task_id: str
    reward: int
    coins: int
    unlocked: List[str] = []


class DrawResponse(BaseModel):
    artifact: Artifact
    coins: int
    is_new: bool
    unlocked: List[str] = []


class ImportResponse(BaseModel):
    success: bool


class RemoveMistakesResponse(BaseModel):
    removed: int


class TutorialResponse(BaseModel):
    completed: bool


class StartQuizRequest(BaseModel):
    user_id: str
    subject_id: str
    config: QuizConfig = QuizConfig()
    source: str = Field(default="bank", pattern="^(bank|ai)$")


class StartReviewRequest(BaseModel):
    user_id: str
    subject_id: str


class StartRevengeRequest(BaseModel):
    user_id: str
    subject_id: str
    question_count: int = Field(default=5, ge=1, le=50)


class AnswerRequest(BaseModel):
    option_index: int = Field(..., ge=0)


class MoveRequest(BaseModel):
    index: int = Field(..., ge=0)


class SessionResponse(BaseModel):
    session_id: str
    user_id: str
    subject_id: str
    state: str
    is_exam: bool
    current_index: int
    questions: List[Question]
    answers: List[Optional[int]]
    streak: int
    time_left: Optional[int] = None
    score: Optional[int] = None


class AnswerResponse(BaseModel):
    correct: bool
    coins_awarded: int
    coins: int
    streak: int
    unlocked: List[str] = []


class ToggleMistakeResponse(BaseModel):
    flagged: bool
    unlocked: List[str] = []
