"""
Daily question service for AllOne
"""

import logging
from datetime import datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from allone.core.config import settings
from allone.core.exceptions import NotFoundException
from allone.core.logging import get_audit_logger
from allone.models.daily_question import DailyQuestion, Difficulty, QuestionAnswer
from allone.models.user import User
from allone.schemas.common import Pagination
from allone.schemas.daily_question import QuestionCreate
from allone.services.community import toggle_like
from allone.utils.validators import utcnow

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()


def award_points(user: User, points: int) -> None:
    """Add points and recompute the level"""
    user.points = (user.points or 0) + points
    user.level = user.points // settings.POINTS_PER_LEVEL + 1


class DailyQuestionService:
    """Daily question service"""

    @staticmethod
    def list_questions(
        db: Session,
        category: Optional[str] = None,
        difficulty: Optional[Difficulty] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[DailyQuestion], Pagination]:
        limit = min(limit, settings.MAX_PAGE_SIZE)
        query = db.query(DailyQuestion).filter(DailyQuestion.is_active.is_(True))
        if category:
            query = query.filter(DailyQuestion.category == category)
        if difficulty is not None:
            query = query.filter(DailyQuestion.difficulty == difficulty)

        total = query.count()
        questions = (
            query.options(selectinload(DailyQuestion.answers))
            .order_by(DailyQuestion.date.desc(), DailyQuestion.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return questions, Pagination.build(page, limit, total)

    @staticmethod
    def get_today(db: Session, now: Optional[datetime] = None) -> DailyQuestion:
        """Latest active question dated today (UTC)"""
        start = datetime.combine((now or utcnow()).date(), time.min)
        question = (
            db.query(DailyQuestion)
            .filter(
                DailyQuestion.is_active.is_(True),
                DailyQuestion.date >= start,
                DailyQuestion.date < start + timedelta(days=1),
            )
            .order_by(DailyQuestion.date.desc(), DailyQuestion.id.desc())
            .first()
        )
        if question is None:
            raise NotFoundException("Question for today")
        return question

    @staticmethod
    def get_question(db: Session, question_id: int) -> DailyQuestion:
        question = db.get(DailyQuestion, question_id)
        if question is None or not question.is_active:
            raise NotFoundException("Question")
        return question

    @staticmethod
    def create_question(db: Session, payload: QuestionCreate, admin: User) -> DailyQuestion:
        data = payload.model_dump()
        data["date"] = data.get("date") or utcnow()
        question = DailyQuestion(**data, likes=[])
        db.add(question)
        db.commit()
        db.refresh(question)

        audit_logger.info("Daily question created", extra={"question_id": question.id, "admin_id": admin.id})
        return question

    @staticmethod
    def add_answer(db: Session, question_id: int, content: str, user: User) -> QuestionAnswer:
        question = DailyQuestionService.get_question(db, question_id)
        answer = QuestionAnswer(author_id=user.id, content=content, likes=[])
        question.answers.append(answer)
        db.commit()
        db.refresh(answer)
        return answer

    @staticmethod
    def toggle_like(db: Session, question_id: int, user: User) -> DailyQuestion:
        question = DailyQuestionService.get_question(db, question_id)
        toggle_like(question.likes, user.id)
        db.commit()
        db.refresh(question)
        return question

    @staticmethod
    def _get_answer(db: Session, question_id: int, answer_id: int) -> QuestionAnswer:
        answer = (
            db.query(QuestionAnswer)
            .filter(QuestionAnswer.id == answer_id, QuestionAnswer.question_id == question_id)
            .first()
        )
        if answer is None:
            raise NotFoundException("Answer")
        return answer

    @staticmethod
    def toggle_answer_like(db: Session, question_id: int, answer_id: int, user: User) -> QuestionAnswer:
        answer = DailyQuestionService._get_answer(db, question_id, answer_id)
        toggle_like(answer.likes, user.id)
        db.commit()
        db.refresh(answer)
        return answer

    @staticmethod
    def accept_answer(db: Session, question_id: int, answer_id: int, admin: User) -> DailyQuestion:
        """
        Mark one answer accepted and the others not.
        The question's points go to the answer's author the first time only.
        """
        question = DailyQuestionService.get_question(db, question_id)
        accepted = DailyQuestionService._get_answer(db, question_id, answer_id)

        for answer in question.answers:
            answer.is_accepted = answer.id == accepted.id

        if not accepted.points_awarded and accepted.author is not None:
            award_points(accepted.author, question.points)
            accepted.points_awarded = True

        db.commit()
        db.refresh(question)

        audit_logger.info(
            "Answer accepted",
            extra={"question_id": question_id, "answer_id": answer_id, "admin_id": admin.id},
        )
        return question
