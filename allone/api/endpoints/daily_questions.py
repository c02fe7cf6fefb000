"""
Daily question endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from allone.core.config import settings
from allone.core.database import get_db
from allone.core.security import get_current_user, require_admin
from allone.models.daily_question import Difficulty
from allone.models.user import User
from allone.schemas.common import dump, dump_list, success_response
from allone.schemas.daily_question import AnswerCreate, AnswerResponse, QuestionCreate, QuestionResponse
from allone.services.daily_questions import DailyQuestionService

router = APIRouter()


@router.get("")
def list_questions(
    category: Optional[str] = None,
    difficulty: Optional[Difficulty] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=50),
    db: Session = Depends(get_db),
):
    questions, pagination = DailyQuestionService.list_questions(db, category, difficulty, page, limit)
    return success_response(dump_list(QuestionResponse, questions), pagination=pagination)


@router.get("/today")
def todays_question(db: Session = Depends(get_db)):
    return success_response(dump(QuestionResponse, DailyQuestionService.get_today(db)))


@router.get("/{question_id}")
def get_question(question_id: int, db: Session = Depends(get_db)):
    return success_response(dump(QuestionResponse, DailyQuestionService.get_question(db, question_id)))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_question(
    payload: QuestionCreate, admin: User = Depends(require_admin), db: Session = Depends(get_db)
):
    question = DailyQuestionService.create_question(db, payload, admin)
    return success_response(dump(QuestionResponse, question), message="Question created successfully")


@router.post("/{question_id}/answers", status_code=status.HTTP_201_CREATED)
def answer_question(
    question_id: int,
    payload: AnswerCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = DailyQuestionService.add_answer(db, question_id, payload.content, current_user)
    return success_response(dump(AnswerResponse, answer), message="Answer submitted")


@router.post("/{question_id}/like")
def like_question(
    question_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    question = DailyQuestionService.toggle_like(db, question_id, current_user)
    return success_response({"likes": list(question.likes), "likeCount": question.like_count,
                             "liked": current_user.id in question.likes})


@router.post("/{question_id}/answers/{answer_id}/like")
def like_answer(
    question_id: int,
    answer_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    answer = DailyQuestionService.toggle_answer_like(db, question_id, answer_id, current_user)
    return success_response({"likes": list(answer.likes), "likeCount": answer.like_count,
                             "liked": current_user.id in answer.likes})


@router.put("/{question_id}/answers/{answer_id}/accept")
def accept_answer(
    question_id: int,
    answer_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Accept an answer and award the question's points to its author"""
    question = DailyQuestionService.accept_answer(db, question_id, answer_id, admin)
    return success_response(dump(QuestionResponse, question), message="Answer accepted")
