"""
Question providers.

A provider turns a subject and a quiz configuration into a list of
questions. Two are available:

- BankQuestionProvider: deterministic keyword filter over the local bank
- GenerativeQuestionProvider: prompts an injected text-generation function
  and parses its JSON answer

Neither retries; callers treat a failure or an empty list as terminal.
"""
import logging
import random
from typing import Callable, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from quizgame.catalog import LOCAL_QUESTION_BANK
from quizgame.constants import (
    REVENGE_CONTEXT_LIMIT, REVENGE_FALLBACK_CONTEXT, TOPIC_ALL, TOPIC_REVENGE
)
from quizgame.exceptions import ProviderFailureException
from quizgame.schemas import MistakeRecord, Question, QuizConfig, Subject

logger = logging.getLogger("quizgame.questions")

_questions_adapter = TypeAdapter(List[Question])


class QuestionProvider:
    """Interface for question sources"""

    def fetch(self, subject: Subject, config: QuizConfig) -> List[Question]:
        raise NotImplementedError


class BankQuestionProvider(QuestionProvider):
    """Serves questions from the fixed local bank"""

    def __init__(
        self,
        bank: Optional[Dict[str, List[Question]]] = None,
        rng: Optional[random.Random] = None
    ):
        self.bank = LOCAL_QUESTION_BANK if bank is None else bank
        self.rng = rng or random.Random()

    def fetch(self, subject: Subject, config: QuizConfig) -> List[Question]:
        """
        Filter the subject's bank by topic keywords and pad to the requested count.

        Returns:
            Exactly config.question_count questions, or [] if nothing matches
        """
        questions = list(self.bank.get(subject.id, []))

        if config.topic not in (TOPIC_ALL, TOPIC_REVENGE):
            keywords = [k.lower() for k in subject.keywords.get(config.topic, [])]
            if keywords:
                questions = [
                    q for q in questions
                    if any(k in q.question.lower() or k in q.explanation.lower() for k in keywords)
                ]

        if not questions:
            logger.info(f"Bank has no questions for {subject.id} / {config.topic}")
            return []

        padded = list(questions)
        while len(padded) < config.question_count:
            padded.extend(questions)
        self.rng.shuffle(padded)
        return [q.model_copy() for q in padded[:config.question_count]]


def build_prompt(subject: Subject, config: QuizConfig) -> str:
    """Prompt for the generative provider (revenge or standard)"""
    count = config.question_count
    json_format = "JSON format: [{question, options(array of 4), correctIndex(int), explanation}]."

    if config.topic == TOPIC_REVENGE and config.context_data:
        return (
            f'Based on these past mistakes:\n"{config.context_data}"\n\n'
            f"Generate STRICTLY exactly {count} NEW multiple-choice questions.\n"
            f"Subject: {subject.prompt_name}.\n"
            "Difficulty: Hard.\n"
            "Task: Create new questions that test the same concepts but with different numbers or examples.\n"
            f"{json_format}\n"
            f"Ensure array length is exactly {count}."
        )

    if config.topic == TOPIC_ALL:
        focus = "Covering all key topics"
    else:
        focus = f'Focus on topic: "{config.topic}"'
    return (
        f"Generate STRICTLY exactly {count} multiple-choice questions. "
        f"Subject: {subject.prompt_name}. Focus: {focus}. Difficulty: Hard.\n"
        f"{json_format}\n"
        "IMPORTANT: The 'explanation' field MUST be provided for every question and should be "
        "detailed, explaining why the correct answer is right.\n"
        f"Ensure the array length is exactly {count}."
    )


class GenerativeQuestionProvider(QuestionProvider):
    """Asks a text-generation function for questions in JSON"""

    def __init__(self, generate: Callable[[str], str]):
        self.generate = generate

    def fetch(self, subject: Subject, config: QuizConfig) -> List[Question]:
        """
        Raises:
            ProviderFailureException: If generation fails or the answer is not a valid question list
        """
        prompt = build_prompt(subject, config)
        try:
            text = self.generate(prompt)
        except Exception as e:
            logger.error(f"Question generation failed for {subject.id}: {e}")
            raise ProviderFailureException(str(e)) from e

        try:
            questions = _questions_adapter.validate_json(text or "[]")
        except ValidationError as e:
            logger.error(f"Unparsable generated questions for {subject.id}: {e.error_count()} error(s)")
            raise ProviderFailureException("response is not a valid question list") from e

        for q in questions:
            if len(q.options) != 4 or not 0 <= q.correct_index < len(q.options):
                raise ProviderFailureException(f"malformed question: {q.question[:40]!r}")
        return questions


def build_revenge_context(mistakes: List[MistakeRecord]) -> str:
    """
    Summarize the most recent mistakes for a revenge prompt.

    Format per line: "1. <question> (Answer: <correct option>)"
    """
    if not mistakes:
        return REVENGE_FALLBACK_CONTEXT

    lines = []
    for number, m in enumerate(mistakes[:REVENGE_CONTEXT_LIMIT], start=1):
        if 0 <= m.correct_index < len(m.options):
            answer = m.options[m.correct_index]
        else:
            answer = "?"
        lines.append(f"{number}. {m.question} (Answer: {answer})")
    return "\n".join(lines)
