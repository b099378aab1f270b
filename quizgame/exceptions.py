"""
Custom exceptions for the quiz game backend.
Provides specific exception types for better error handling and recovery.
"""


class QuizGameException(Exception):
    """Base exception for quiz game application"""
    pass


class DuplicateUsernameException(QuizGameException):
    """Raised when registering a username that already exists"""
    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username '{username}' already exists")


class UserNotFoundException(QuizGameException):
    """Raised when a user cannot be found"""
    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"User '{identifier}' not found")


class InvalidFormatException(QuizGameException):
    """Raised when an imported save bundle is malformed"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Invalid save file: {message}")


class CorruptPersistedValueException(QuizGameException):
    """Raised when a stored field cannot be decoded"""
    def __init__(self, key: str, details: str):
        self.key = key
        self.details = details
        super().__init__(f"Corrupt value for {key}: {details}")


class EmptyQuestionSetException(QuizGameException):
    """Raised when a question provider returns no questions"""
    def __init__(self, subject_id: str, topic: str):
        self.subject_id = subject_id
        self.topic = topic
        super().__init__(f"No questions available for {subject_id} ({topic})")


class ProviderFailureException(QuizGameException):
    """Raised when the question provider fails"""
    def __init__(self, details: str):
        self.details = details
        super().__init__(f"Question provider failed: {details}")


class InsufficientCoinsException(QuizGameException):
    """Raised when a coin-gated action is attempted without enough coins"""
    def __init__(self, balance: int, cost: int):
        self.balance = balance
        self.cost = cost
        super().__init__(f"Not enough coins: have {balance}, need {cost}")


class SessionNotFoundException(QuizGameException):
    """Raised when a quiz session is not found"""
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Quiz session {session_id} not found")


class ValidationException(QuizGameException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")
