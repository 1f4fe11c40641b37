from typing import Dict, List
from educhain.database import get_db
from educhain.errors import AuthorizationError, NotFoundError, ValidationError
from educhain.models import Answer, Enrollment, Homework, Profile, Question
from educhain.models.profile import ProfileRole
from educhain.models.token_transaction import TransactionType
from educhain.services.ledger_service import append_transaction
from educhain.services.serializers import answer_to_dict, question_to_dict
from educhain.utils.validators import parse_id, validate_text
from config.config import Config
from educhain.utils.logger import get_logger

logger = get_logger(__name__)


class QuestionService:
    """Service for homework questions and mentor answers"""

    def ask_question(self, student_id: int, homework_id: int, question_text: str) -> Dict:
        """A student asks a question about a homework they are enrolled in"""
        valid, homework_id = parse_id(homework_id, 'homework_id')
        if not valid:
            raise ValidationError(homework_id)

        valid, error = validate_text(question_text, 'Question')
        if not valid:
            raise ValidationError(error)

        with get_db() as db:
            homework = db.query(Homework).filter_by(id=homework_id).first()
            if not homework:
                raise NotFoundError('Homework not found')

            enrolled = db.query(Enrollment).filter_by(
                student_id=student_id, homework_id=homework_id
            ).first()
            if not enrolled:
                raise AuthorizationError('Enroll in this homework to ask questions')

            question = Question(
                student_id=student_id,
                homework_id=homework_id,
                question_text=question_text.strip()
            )
            db.add(question)
            db.flush()

            logger.info(f"Student {student_id} asked question {question.id} on homework {homework_id}")
            return question_to_dict(question, answers=[])

    def get_questions(self, student_id: int = None, homework_id: int = None,
                      is_answered: bool = None) -> List[Dict]:
        """Questions with their answers, newest first"""
        with get_db() as db:
            query = db.query(Question)
            if student_id is not None:
                query = query.filter(Question.student_id == student_id)
            if homework_id is not None:
                query = query.filter(Question.homework_id == homework_id)
            if is_answered is not None:
                query = query.filter(Question.is_answered.is_(is_answered))
            questions = query.order_by(Question.created_at.desc(), Question.id.desc()).all()
            return [question_to_dict(q, answers=q.answers.all()) for q in questions]

    def get_mentorable_questions(self) -> List[Dict]:
        """Unanswered questions any mentor can pick up"""
        return self.get_questions(is_answered=False)

    def record_answer(self, question_id: int, answerer_id: int, answer_text: str,
                      is_from_teacher: bool) -> Dict:
        """Answer a question; mentors earn a fixed token reward, teachers nothing"""
        valid, error = validate_text(answer_text, 'Answer')
        if not valid:
            raise ValidationError(error)

        with get_db() as db:
            question = db.query(Question).filter_by(id=question_id).first()
            if not question:
                raise NotFoundError('Question not found')
            answerer = db.query(Profile).filter_by(id=answerer_id).first()
            if not answerer:
                raise NotFoundError('Profile not found')

            if is_from_teacher:
                homework = db.query(Homework).filter_by(id=question.homework_id).first()
                if answerer.role != ProfileRole.TEACHER or homework.teacher_id != answerer_id:
                    raise AuthorizationError('Only the homework teacher can answer as teacher')
                reward = 0.0
            else:
                if answerer.role != ProfileRole.STUDENT or not answerer.is_mentor:
                    raise AuthorizationError('Only mentors can answer questions')
                if question.student_id == answerer_id:
                    raise AuthorizationError('You cannot answer your own question')
                if question.is_answered:
                    raise ValidationError('This question has already been answered')
                reward = Config.MENTOR_ANSWER_REWARD

            answer = Answer(
                question_id=question_id,
                answerer_id=answerer_id,
                answer_text=answer_text.strip(),
                is_from_teacher=bool(is_from_teacher),
                tokens_earned=reward
            )
            db.add(answer)

            # Mentors may only claim a still-unanswered question
            claim = db.query(Question).filter(Question.id == question_id)
            if not is_from_teacher:
                claim = claim.filter(Question.is_answered.is_(False))
            if not claim.update({Question.is_answered: True}, synchronize_session=False):
                raise ValidationError('This question has already been answered')
            db.flush()

            if reward > 0:
                append_transaction(
                    db, answerer_id, reward, TransactionType.MENTOR_REWARD,
                    'Answered a student question as mentor'
                )

            logger.info(
                f"Profile {answerer_id} answered question {question_id}"
                + (f", earned {reward:g} tokens" if reward else "")
            )
            return answer_to_dict(answer)
