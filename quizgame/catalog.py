"""
Static game data: daily task templates, achievements, artifacts, subjects
and the local question bank used in offline ("bank") mode.
"""
from typing import Dict, List, Optional

from quizgame.constants import (
    TASK_LOGIN, TASK_QUIZ, TASK_CORRECT, TASK_STREAK, TASK_NECROMANCER, TASK_SCHOLAR
)
from quizgame.schemas import (
    Achievement, Artifact, ConditionType, DailyTask, Question, Rarity, Subject, TaskDifficulty
)


# (id, title, desc, target, reward, difficulty)
_DAILY_TASK_TEMPLATES = [
    (TASK_LOGIN, "Adventure Begins", "Log in to the game", 1, 50, TaskDifficulty.EASY),
    (TASK_QUIZ, "First Trial", "Finish any practice session", 1, 100, TaskDifficulty.EASY),
    (TASK_CORRECT, "Precision Strike", "Answer 15 questions correctly", 15, 200, TaskDifficulty.NORMAL),
    (TASK_STREAK, "Streak Master", "Reach a 5-answer streak in one session", 5, 300, TaskDifficulty.HARD),
    (TASK_NECROMANCER, "Purify the Undead", "Master 3 questions from the mistake ledger", 3, 350, TaskDifficulty.HARD),
    (TASK_SCHOLAR, "Erudite", "Start 3 full practice sessions", 3, 500, TaskDifficulty.NIGHTMARE),
]


def build_daily_tasks() -> List[DailyTask]:
    """Fresh task list for a new day; the login task starts satisfied."""
    return [
        DailyTask(
            id=task_id,
            title=title,
            desc=desc,
            target=target,
            current=target if task_id == TASK_LOGIN else 0,
            reward=reward,
            claimed=False,
            difficulty=difficulty,
        )
        for task_id, title, desc, target, reward, difficulty in _DAILY_TASK_TEMPLATES
    ]


ACHIEVEMENTS: List[Achievement] = [
    Achievement(id="first_blood", title="First Blood", desc="Answer 1 question correctly",
                condition_type=ConditionType.TOTAL_CORRECT, target_value=1),
    Achievement(id="scholar_1", title="Diligent Apprentice", desc="Answer 20 questions correctly",
                condition_type=ConditionType.TOTAL_CORRECT, target_value=20),
    Achievement(id="scholar_2", title="Polymath", desc="Answer 100 questions correctly",
                condition_type=ConditionType.TOTAL_CORRECT, target_value=100),
    Achievement(id="practice_1", title="Sea of Questions", desc="Answer 50 questions",
                condition_type=ConditionType.TOTAL_ANSWERED, target_value=50),
    Achievement(id="rich_1", title="First Pot of Gold", desc="Hold 1000 coins",
                condition_type=ConditionType.TOTAL_COINS, target_value=1000),
    Achievement(id="cleaner", title="Sweeper", desc="Master 5 questions from the mistake ledger",
                condition_type=ConditionType.MISTAKES_CLEARED, target_value=5),
    Achievement(id="streak_master", title="Unstoppable", desc="Reach a 10-answer streak",
                condition_type=ConditionType.STREAK_RECORD, target_value=10),
]


ARTIFACTS: List[Artifact] = [
    # Basic tier
    Artifact(id="r1", name="Straw Sandals", rarity=Rarity.R, bonus=1),
    Artifact(id="r2", name="Iron Pen", rarity=Rarity.R, bonus=1),
    Artifact(id="r3", name="Cloth Uniform", rarity=Rarity.R, bonus=1),
    Artifact(id="r4", name="Red Agate Flask", rarity=Rarity.R, bonus=1),
    Artifact(id="r5", name="Gem of Knowledge", rarity=Rarity.R, bonus=2),
    Artifact(id="r6", name="Sapphire Water", rarity=Rarity.R, bonus=1),
    # Advanced tier
    Artifact(id="sr1", name="Boots of Calm", rarity=Rarity.SR, bonus=3),
    Artifact(id="sr2", name="Vampiric Scythe", rarity=Rarity.SR, bonus=3),
    Artifact(id="sr3", name="Snowpeak Shield", rarity=Rarity.SR, bonus=4),
    Artifact(id="sr4", name="Meteor", rarity=Rarity.SR, bonus=4),
    Artifact(id="sr5", name="Radiant Blade", rarity=Rarity.SR, bonus=4),
    Artifact(id="sr6", name="Purifying Crystal", rarity=Rarity.SR, bonus=3),
    Artifact(id="sr7", name="Swift Pencil", rarity=Rarity.SR, bonus=3),
    # Legendary tier
    Artifact(id="ssr1", name="Infinity Edge", rarity=Rarity.SSR, bonus=8),
    Artifact(id="ssr2", name="Mask of Torment", rarity=Rarity.SSR, bonus=8),
    Artifact(id="ssr3", name="Scholar's Wrath", rarity=Rarity.SSR, bonus=10),
    Artifact(id="ssr4", name="Sage's Protection", rarity=Rarity.SSR, bonus=9),
    Artifact(id="ssr5", name="Radiant Moon", rarity=Rarity.SSR, bonus=9),
    Artifact(id="ssr6", name="Army Breaker", rarity=Rarity.SSR, bonus=10),
    Artifact(id="ssr7", name="Bloodthirster", rarity=Rarity.SSR, bonus=9),
    Artifact(id="ssr8", name="Frost Storm", rarity=Rarity.SSR, bonus=8),
]

_ARTIFACTS_BY_ID: Dict[str, Artifact] = {a.id: a for a in ARTIFACTS}


def get_artifact(artifact_id: Optional[str]) -> Optional[Artifact]:
    if not artifact_id:
        return None
    return _ARTIFACTS_BY_ID.get(artifact_id)


SUBJECTS: List[Subject] = [
    Subject(
        id="english",
        name="College English",
        prompt_name="College English",
        desc="Grammar and core vocabulary",
        topics=["Subjunctive mood", "Inversion", "Non-finite verbs", "Attributive clauses", "Core vocabulary"],
        keywords={
            "Subjunctive mood": ["subjunctive", "were", "high time"],
            "Inversion": ["inversion", "never", "hardly"],
            "Non-finite verbs": ["infinitive", "gerund", "participle"],
            "Attributive clauses": ["which", "whom", "whose"],
            "Core vocabulary": ["vocabulary", "meaning"],
        },
    ),
    Subject(
        id="math",
        name="Advanced Mathematics",
        prompt_name="Advanced Mathematics",
        desc="Calculus fundamentals",
        topics=["Functions and limits", "Derivatives", "Indefinite integrals", "Definite integrals", "Differential equations"],
        keywords={
            "Functions and limits": ["limit", "lim"],
            "Derivatives": ["derivative", "differential"],
            "Indefinite integrals": ["antiderivative", "indefinite"],
            "Definite integrals": ["definite", "area"],
            "Differential equations": ["equation", "dy/dx"],
        },
    ),
    Subject(
        id="computer",
        name="Computer Fundamentals",
        prompt_name="Computer Science Fundamentals",
        desc="Data, hardware, systems and networks",
        topics=["Data representation", "Hardware", "Operating systems", "Networks", "New technology"],
        keywords={
            "Data representation": ["byte", "bit", "ascii", "binary"],
            "Hardware": ["cpu", "memory", "hardware"],
            "Operating systems": ["process", "operating system"],
            "Networks": ["network", "tcp", "ip"],
            "New technology": ["cloud", "ai", "blockchain"],
        },
    ),
    Subject(
        id="politics",
        name="Political Theory",
        prompt_name="Chinese Politics",
        desc="Theory, history and current affairs",
        topics=["Marxist philosophy", "Mao Zedong Thought", "Deng Xiaoping Theory", "New Era Thought", "Current affairs"],
        keywords={
            "Marxist philosophy": ["materialist", "dialectic", "contradiction", "practice"],
            "Mao Zedong Thought": ["mao", "new democratic", "revolution"],
            "Deng Xiaoping Theory": ["deng", "reform and opening", "primary stage"],
            "New Era Thought": ["new era", "socialism with chinese characteristics", "modernization"],
            "Current affairs": ["congress", "anniversary", "meeting"],
        },
    ),
]

_SUBJECTS_BY_ID: Dict[str, Subject] = {s.id: s for s in SUBJECTS}


def get_subject(subject_id: str) -> Optional[Subject]:
    return _SUBJECTS_BY_ID.get(subject_id)


LOCAL_QUESTION_BANK: Dict[str, List[Question]] = {
    "english": [
        Question(
            question="Neither the students nor the teacher ______ the idea.",
            options=["supports", "support", "supporting", "to support"],
            correct_index=0,
            explanation="Subject-verb agreement: with neither...nor the verb agrees with the nearer subject, "
                        "and 'teacher' is singular.",
        ),
        Question(
            question="It is high time that we ______ immediate measures.",
            options=["take", "took", "will take", "have taken"],
            correct_index=1,
            explanation="Subjunctive mood: after 'It is high time that' the clause takes the past tense.",
        ),
        Question(
            question="If I ______ you, I would not miss the chance.",
            options=["am", "was", "were", "have been"],
            correct_index=2,
            explanation="Subjunctive mood: a hypothesis contrary to present fact uses 'were' for every person.",
        ),
    ],
    "math": [
        Question(
            question="As x -> 0, what is the limit of sin(x) / x?",
            options=["0", "1", "Infinity", "Does not exist"],
            correct_index=1,
            explanation="One of the two important limits: sin(x) and x are equivalent infinitesimals, "
                        "so the ratio tends to 1.",
        ),
        Question(
            question="What is lim(x->inf) (1 + 1/x)^x?",
            options=["1", "e", "0", "Infinity"],
            correct_index=1,
            explanation="One of the two important limits: this expression defines the constant e.",
        ),
    ],
    "computer": [
        Question(
            question="How many bits does one byte contain?",
            options=["4", "8", "16", "32"],
            correct_index=1,
            explanation="1 byte = 8 bits, the basic unit conversion for storage capacity.",
        ),
        Question(
            question="The ASCII code of 'A' is 65. What is the ASCII code of 'C'?",
            options=["66", "67", "68", "97"],
            correct_index=1,
            explanation="ASCII codes are sequential: A=65, B=66, C=67.",
        ),
    ],
    "politics": [
        Question(
            question="What is the fundamental method of materialist dialectics?",
            options=["Seeking truth from facts", "Contradiction analysis", "The mass line",
                     "Linking theory with practice"],
            correct_index=1,
            explanation="Contradiction analysis is the fundamental method: dialectics holds that "
                        "contradiction drives the development of things.",
        ),
        Question(
            question="What is the core of the New Era Thought on socialism with Chinese characteristics?",
            options=["Upholding and developing socialism with Chinese characteristics",
                     "National rejuvenation", "A community with a shared future",
                     "Strict self-governance"],
            correct_index=0,
            explanation="Its core is upholding and developing socialism with Chinese characteristics.",
        ),
    ],
}
