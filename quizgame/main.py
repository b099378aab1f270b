from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from pathlib import Path

from quizgame.database import engine, get_db, Base
from quizgame import models  # noqa: F401  registers tables with Base
from quizgame.schemas import (
    User, UsernameRequest, EquipRequest, ProgressionResponse, DailyTask,
    ClaimResponse, AchievementProgress, UserStats, DrawResponse, Artifact,
    MistakeRecord, RemoveMistakesResponse, ImportResponse, TutorialResponse,
    Subject, StartQuizRequest, StartReviewRequest, StartRevengeRequest,
    SessionResponse, AnswerRequest, AnswerResponse, ToggleMistakeResponse,
    MoveRequest
)
from quizgame.auth import verify_api_key
from quizgame.catalog import ARTIFACTS, SUBJECTS
from quizgame.constants import (
    CORS_ALLOWED_ORIGINS, DEFAULT_LOG_DIRECTORY_DEV, LOG_DIR, LOG_FILE
)
from quizgame.exceptions import (
    QuizGameException, DuplicateUsernameException, UserNotFoundException,
    SessionNotFoundException, EmptyQuestionSetException, ProviderFailureException
)
from quizgame.repositories.storage_repository import SqlKeyValueStore
from quizgame.services import save_transfer_service
from quizgame.services.game_services import GameServices, build_services
from quizgame.services.quiz_session_service import QuizSessionService
from quizgame.services.scheduler_service import ExamTimer
from quizgame.services.date_service import DateService

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    Path(DEFAULT_LOG_DIRECTORY_DEV).mkdir(parents=True, exist_ok=True)
    log_path = Path(DEFAULT_LOG_DIRECTORY_DEV) / LOG_FILE

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("quizgame")

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Quiz Game Progression API",
    description="Player progression and persistence for the quiz game",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

exam_timer = ExamTimer()
session_service = QuizSessionService(timer=exam_timer)


def get_services(db: Session = Depends(get_db)) -> GameServices:
    return build_services(SqlKeyValueStore(db))


def require_user(user_id: str, services: GameServices) -> User:
    user = services.users.get_user(user_id)
    if user is None:
        raise UserNotFoundException(user_id)
    return user


@app.exception_handler(QuizGameException)
async def quiz_game_exception_handler(request: Request, exc: QuizGameException):
    if isinstance(exc, DuplicateUsernameException):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, (UserNotFoundException, SessionNotFoundException)):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, (ProviderFailureException, EmptyQuestionSetException)):
        status_code = status.HTTP_502_BAD_GATEWAY
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Startup event
@app.on_event("startup")
async def startup_event():
    logger.info(f"Quiz Game API started. Logging to: {log_path}")
    exam_timer.start()


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Quiz Game API")
    exam_timer.shutdown()


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "Quiz Game Progression API", "status": "active"}


# ===== CATALOG ENDPOINTS =====

@app.get("/api/subjects", response_model=List[Subject], dependencies=[Depends(verify_api_key)])
async def get_subjects():
    return SUBJECTS


@app.get("/api/artifacts", response_model=List[Artifact], dependencies=[Depends(verify_api_key)])
async def get_artifacts():
    return ARTIFACTS


# ===== USER ENDPOINTS =====

@app.post("/api/users/register", response_model=User, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
async def register_user(request: UsernameRequest, services: GameServices = Depends(get_services)):
    """Register a new user"""
    return services.users.register(request.username)


@app.post("/api/users/login", response_model=User, dependencies=[Depends(verify_api_key)])
async def login_user(request: UsernameRequest, services: GameServices = Depends(get_services)):
    """Log in by username"""
    return services.users.login(request.username)


@app.get("/api/users/{user_id}/progression", response_model=ProgressionResponse, dependencies=[Depends(verify_api_key)])
async def get_progression(user_id: str, services: GameServices = Depends(get_services)):
    """Get coins, inventory and equipped artifact"""
    require_user(user_id, services)
    return ProgressionResponse(
        coins=services.progression.get_coins(user_id),
        inventory=services.progression.get_inventory(user_id),
        equipped=services.progression.get_equipped(user_id),
    )


@app.put("/api/users/{user_id}/equipped", response_model=ProgressionResponse, dependencies=[Depends(verify_api_key)])
async def set_equipped(user_id: str, request: EquipRequest, services: GameServices = Depends(get_services)):
    """Equip an artifact (null unequips)"""
    require_user(user_id, services)
    services.progression.set_equipped(user_id, request.artifact_id)
    return ProgressionResponse(
        coins=services.progression.get_coins(user_id),
        inventory=services.progression.get_inventory(user_id),
        equipped=services.progression.get_equipped(user_id),
    )


@app.get("/api/users/{user_id}/stats", response_model=UserStats, dependencies=[Depends(verify_api_key)])
async def get_stats(user_id: str, services: GameServices = Depends(get_services)):
    require_user(user_id, services)
    return services.stats.get_stats(user_id)


# ===== DAILY TASK ENDPOINTS =====

@app.get("/api/users/{user_id}/tasks", response_model=List[DailyTask], dependencies=[Depends(verify_api_key)])
async def get_tasks(user_id: str, services: GameServices = Depends(get_services)):
    """Get today's tasks (resets them on the first request of a new day)"""
    require_user(user_id, services)
    return services.tasks.get_tasks(user_id)


@app.post("/api/users/{user_id}/tasks/{task_id}/claim", response_model=ClaimResponse, dependencies=[Depends(verify_api_key)])
async def claim_task(user_id: str, task_id: str, services: GameServices = Depends(get_services)):
    """Claim a completed task's reward"""
    return session_service.claim_task(services, user_id, task_id)


# ===== ACHIEVEMENT ENDPOINTS =====

@app.get("/api/users/{user_id}/achievements", response_model=List[AchievementProgress], dependencies=[Depends(verify_api_key)])
async def get_achievements(user_id: str, services: GameServices = Depends(get_services)):
    """Get progress toward every achievement"""
    require_user(user_id, services)
    return services.achievements.get_progress(
        user_id,
        services.stats.get_stats(user_id),
        services.progression.get_coins(user_id),
    )


# ===== GACHA ENDPOINTS =====

@app.post("/api/users/{user_id}/gacha/draw", response_model=DrawResponse, dependencies=[Depends(verify_api_key)])
async def draw_artifact(user_id: str, services: GameServices = Depends(get_services)):
    """Spend coins on a random artifact"""
    require_user(user_id, services)
    with services.data.lock(user_id):
        unlocked_before = services.achievements.get_unlocked(user_id)
        artifact, is_new = services.gacha.draw_with_status(user_id)
        unlocked = services.new_unlocks(user_id, unlocked_before)
    return DrawResponse(
        artifact=artifact,
        coins=services.progression.get_coins(user_id),
        is_new=is_new,
        unlocked=unlocked,
    )


# ===== MISTAKE LEDGER ENDPOINTS =====

@app.get("/api/users/{user_id}/mistakes", response_model=List[MistakeRecord], dependencies=[Depends(verify_api_key)])
async def get_mistakes(user_id: str, subject_id: Optional[str] = None, services: GameServices = Depends(get_services)):
    """Get recorded mistakes, newest first"""
    require_user(user_id, services)
    return services.mistakes.get_mistakes(user_id, subject_id)


@app.delete("/api/users/{user_id}/mistakes", response_model=RemoveMistakesResponse, dependencies=[Depends(verify_api_key)])
async def remove_mistake(user_id: str, question: str, services: GameServices = Depends(get_services)):
    """Remove records by exact question text"""
    require_user(user_id, services)
    if not question:
        raise HTTPException(status_code=400, detail="question must not be empty")
    return RemoveMistakesResponse(removed=services.mistakes.remove(user_id, question))


# ===== SAVE TRANSFER ENDPOINTS =====

@app.get("/api/users/{user_id}/export", dependencies=[Depends(verify_api_key)])
async def export_save(user_id: str, services: GameServices = Depends(get_services)):
    """Download the user's save file"""
    user = require_user(user_id, services)
    bundle = save_transfer_service.export_user_data(services.data, user_id)
    filename = f"zsb_save_{user.username}_{DateService.get_today().isoformat()}.json"
    return JSONResponse(
        content=bundle,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@app.post("/api/users/{user_id}/import", response_model=ImportResponse, dependencies=[Depends(verify_api_key)])
async def import_save(user_id: str, request: Request, services: GameServices = Depends(get_services)):
    """Restore a save file (raw JSON body) into this user"""
    require_user(user_id, services)
    body = await request.body()
    return ImportResponse(success=save_transfer_service.import_user_data(services.data, user_id, body))


@app.get("/api/users/{user_id}/tutorial", response_model=TutorialResponse, dependencies=[Depends(verify_api_key)])
async def get_tutorial(user_id: str, services: GameServices = Depends(get_services)):
    require_user(user_id, services)
    return TutorialResponse(completed=save_transfer_service.is_tutorial_done(services.data, user_id))


@app.post("/api/users/{user_id}/tutorial", response_model=TutorialResponse, dependencies=[Depends(verify_api_key)])
async def complete_tutorial(user_id: str, services: GameServices = Depends(get_services)):
    require_user(user_id, services)
    save_transfer_service.mark_tutorial_done(services.data, user_id)
    return TutorialResponse(completed=True)


# ===== QUIZ SESSION ENDPOINTS =====

@app.post("/api/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
async def start_session(request: StartQuizRequest, services: GameServices = Depends(get_services)):
    """Start a quiz from the local bank or the question generator"""
    session = session_service.start(services, request.user_id, request.subject_id, request.config, request.source)
    return session_service.to_response(session)


@app.post("/api/sessions/review", response_model=SessionResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
async def start_review_session(request: StartReviewRequest, services: GameServices = Depends(get_services)):
    """Replay recorded mistakes of one subject"""
    session = session_service.start_review(services, request.user_id, request.subject_id)
    return session_service.to_response(session)


@app.post("/api/sessions/revenge", response_model=SessionResponse, status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_api_key)])
async def start_revenge_session(request: StartRevengeRequest, services: GameServices = Depends(get_services)):
    """Generate new questions based on recorded mistakes"""
    session = session_service.start_revenge(services, request.user_id, request.subject_id, request.question_count)
    return session_service.to_response(session)


@app.get("/api/sessions/{session_id}", response_model=SessionResponse, dependencies=[Depends(verify_api_key)])
async def get_session(session_id: str):
    return session_service.to_response(session_service.get(session_id))


@app.post("/api/sessions/{session_id}/answer", response_model=AnswerResponse, dependencies=[Depends(verify_api_key)])
async def answer_question(session_id: str, request: AnswerRequest, services: GameServices = Depends(get_services)):
    """Answer the current question"""
    return session_service.answer(services, session_id, request.option_index)


@app.post("/api/sessions/{session_id}/mistake", response_model=ToggleMistakeResponse, dependencies=[Depends(verify_api_key)])
async def toggle_mistake(session_id: str, services: GameServices = Depends(get_services)):
    """Flag or unflag the current question in the mistake ledger"""
    return session_service.toggle_mistake(services, session_id)


@app.put("/api/sessions/{session_id}/position", response_model=SessionResponse, dependencies=[Depends(verify_api_key)])
async def move_in_session(session_id: str, request: MoveRequest):
    """Jump to another question"""
    return session_service.to_response(session_service.move_to(session_id, request.index))


@app.post("/api/sessions/{session_id}/submit", response_model=SessionResponse, dependencies=[Depends(verify_api_key)])
async def submit_session(session_id: str):
    """Finish the session and get the score"""
    return session_service.to_response(session_service.submit(session_id))


@app.delete("/api/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(verify_api_key)])
async def leave_session(session_id: str):
    """Abandon a session"""
    session_service.leave(session_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("quizgame.main:app", host="0.0.0.0", port=8000, reload=False)
