from typing import Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from educhain.database import get_db
from educhain.errors import DuplicateError, NotFoundError, ValidationError
from educhain.integrations import StorageClient
from educhain.models import (
    Answer, DataAccessLog, Enrollment, Homework, Profile, Question, Review,
    Submission, TaskResource, TokenTransaction, Vote
)
from educhain.models.data_access_log import DataAccessAction
from educhain.models.profile import ProfileRole
from educhain.services.ledger_service import credit_welcome_bonus
from educhain.services.reputation_service import COUNTER_FOR_VOTE, adjust_counters, recompute_rating
from educhain.services.serializers import (
    enrollment_to_dict, file_to_dict, homework_to_dict, profile_to_dict,
    question_to_dict, answer_to_dict, review_to_dict, transaction_to_dict
)
from educhain.utils.validators import normalize_wallet_address, validate_username
from educhain.utils.logger import get_logger

logger = get_logger(__name__)


class ProfileService:
    """Service for wallet profiles and personal data requests"""

    def __init__(self, storage: StorageClient = None):
        self.storage = storage or StorageClient()

    def get_profile_by_wallet(self, wallet_address: str) -> Optional[Dict]:
        """Profile for a wallet, or None if it hasn't onboarded yet"""
        valid, address = normalize_wallet_address(wallet_address)
        if not valid:
            raise ValidationError(address)

        with get_db() as db:
            profile = db.query(Profile).filter_by(wallet_address=address).first()
            return profile_to_dict(profile) if profile else None

    def get_profile(self, profile_id: int) -> Dict:
        with get_db() as db:
            profile = db.query(Profile).filter_by(id=profile_id).first()
            if not profile:
                raise NotFoundError('Profile not found')
            return profile_to_dict(profile)

    def create_profile(self, wallet_address: str, username: str, role: str) -> Dict:
        """Onboard a wallet: zeroed counters plus the role's welcome bonus, atomically"""
        valid, address = normalize_wallet_address(wallet_address)
        if not valid:
            raise ValidationError(address)

        valid, error = validate_username(username)
        if not valid:
            raise ValidationError(error)

        try:
            role = ProfileRole(role)
        except ValueError:
            raise ValidationError('Role must be student or teacher')

        try:
            with get_db() as db:
                if db.query(Profile).filter_by(wallet_address=address).first():
                    raise DuplicateError('A profile already exists for this wallet')

                profile = Profile(
                    wallet_address=address,
                    username=username,
                    role=role,
                    rating=0.0,
                    total_reviews=0,
                    upvotes=0,
                    downvotes=0,
                    completed_count=0,
                    is_mentor=False,
                    token_balance=0.0
                )
                db.add(profile)
                db.flush()

                credit_welcome_bonus(db, profile.id, role)
                db.refresh(profile)

                logger.info(f"Created {role.value} profile {profile.id} for wallet {address}")
                return profile_to_dict(profile)

        except IntegrityError:
            raise DuplicateError('A profile already exists for this wallet')

    def get_account_data(self, profile_id: int, action: DataAccessAction = DataAccessAction.VIEW) -> Dict:
        """Everything stored about a profile; the request itself is logged"""
        with get_db() as db:
            profile = db.query(Profile).filter_by(id=profile_id).first()
            if not profile:
                raise NotFoundError('Profile not found')

            db.add(DataAccessLog(wallet_address=profile.wallet_address, action=action, data_type='all'))

            enrollments = db.query(Enrollment).filter_by(student_id=profile_id).all()
            submissions = db.query(Submission).filter_by(student_id=profile_id).all()
            homeworks = db.query(Homework).filter_by(teacher_id=profile_id).all()
            questions = db.query(Question).filter_by(student_id=profile_id).all()
            answers = db.query(Answer).filter_by(answerer_id=profile_id).all()
            reviews_received = db.query(Review).filter_by(student_id=profile_id).all()
            reviews_given = db.query(Review).filter_by(reviewer_id=profile_id).all()
            votes_cast = db.query(Vote).filter_by(voter_id=profile_id).all()
            transactions = db.query(TokenTransaction).filter_by(profile_id=profile_id).order_by(
                TokenTransaction.id
            ).all()

            logger.info(f"Profile {profile_id} requested data {action.value}")

            return {
                'profile': profile_to_dict(profile),
                'enrollments': [enrollment_to_dict(e) for e in enrollments],
                'submissions': [file_to_dict(s) for s in submissions],
                'homeworks': [homework_to_dict(h) for h in homeworks],
                'questions': [question_to_dict(q) for q in questions],
                'answers': [answer_to_dict(a) for a in answers],
                'reviews_received': [review_to_dict(r) for r in reviews_received],
                'reviews_given': [review_to_dict(r) for r in reviews_given],
                'votes_cast': [
                    {'voted_for_id': v.voted_for_id, 'vote_type': v.vote_type.value}
                    for v in votes_cast
                ],
                'transactions': [transaction_to_dict(t) for t in transactions]
            }

    def export_account_data(self, profile_id: int) -> Dict:
        return self.get_account_data(profile_id, action=DataAccessAction.EXPORT)

    def delete_account(self, profile_id: int) -> Dict:
        """Delete a profile and everything that depends on it.

        Votes the profile cast are retracted from their targets' counters,
        ratings of students who lose reviews are recomputed, and freed
        enrollment slots are returned to their homeworks.
        """
        with get_db() as db:
            profile = db.query(Profile).filter_by(id=profile_id).first()
            if not profile:
                raise NotFoundError('Profile not found')

            db.add(DataAccessLog(
                wallet_address=profile.wallet_address,
                action=DataAccessAction.DELETE,
                data_type='all'
            ))

            # Retract votes this profile cast; votes on it go with it
            for vote in db.query(Vote).filter_by(voter_id=profile_id).all():
                adjust_counters(db, vote.voted_for_id, **{COUNTER_FOR_VOTE[vote.vote_type]: -1})
                db.delete(vote)
            db.query(Vote).filter_by(voted_for_id=profile_id).delete(synchronize_session=False)

            homework_ids = [h.id for h in db.query(Homework.id).filter(Homework.teacher_id == profile_id)]
            enrollments = db.query(Enrollment).filter(
                (Enrollment.student_id == profile_id) | Enrollment.homework_id.in_(homework_ids)
            ).all()
            enrollment_ids = [e.id for e in enrollments]

            # Students who lose reviews need a fresh rating
            reviews = db.query(Review).filter(
                (Review.reviewer_id == profile_id)
                | (Review.student_id == profile_id)
                | Review.homework_id.in_(homework_ids)
            ).all()
            affected_students = {r.student_id for r in reviews if r.student_id != profile_id}
            for review in reviews:
                db.delete(review)

            # Answers this profile gave elsewhere, and everything on its own questions/homeworks
            questions = db.query(Question).filter(
                (Question.student_id == profile_id) | Question.homework_id.in_(homework_ids)
            ).all()
            question_ids = [q.id for q in questions]
            reopened = {
                a.question_id for a in db.query(Answer).filter_by(answerer_id=profile_id)
                if a.question_id not in question_ids
            }
            db.query(Answer).filter(
                (Answer.answerer_id == profile_id) | Answer.question_id.in_(question_ids)
            ).delete(synchronize_session=False)
            for question in questions:
                db.delete(question)

            file_urls = [
                s.file_url for s in db.query(Submission).filter(
                    Submission.enrollment_id.in_(enrollment_ids)
                )
            ] + [
                r.file_url for r in db.query(TaskResource).filter(
                    TaskResource.homework_id.in_(homework_ids)
                )
            ]
            db.query(Submission).filter(
                Submission.enrollment_id.in_(enrollment_ids)
            ).delete(synchronize_session=False)
            db.query(TaskResource).filter(
                TaskResource.homework_id.in_(homework_ids)
            ).delete(synchronize_session=False)

            # Free the slots this student held on other teachers' homeworks
            for enrollment in enrollments:
                if enrollment.student_id == profile_id and enrollment.homework_id not in homework_ids:
                    db.query(Homework).filter(Homework.id == enrollment.homework_id).update(
                        {Homework.current_students: Homework.current_students - 1},
                        synchronize_session=False
                    )
                db.delete(enrollment)
            db.flush()

            for homework_id in homework_ids:
                db.query(Homework).filter_by(id=homework_id).delete(synchronize_session=False)

            db.query(TokenTransaction).filter_by(profile_id=profile_id).delete(synchronize_session=False)
            db.flush()

            for question_id in reopened:
                still_answered = db.query(Answer).filter_by(question_id=question_id).first() is not None
                db.query(Question).filter_by(id=question_id).update(
                    {Question.is_answered: still_answered}, synchronize_session=False
                )

            for student_id in affected_students:
                recompute_rating(db, student_id)

            db.delete(profile)
            wallet_address = profile.wallet_address

        logger.info(f"Deleted profile {profile_id} ({wallet_address})")

        failed = [url for url in file_urls if not self.storage.delete(url)]
        if failed:
            logger.warning(f"Could not remove {len(failed)} stored files for profile {profile_id}")

        return {
            'deleted': True,
            'profile_id': profile_id,
            'files_removed': len(file_urls) - len(failed),
            'files_failed': len(failed)
        }

    def list_profiles(self, role: str = None) -> List[Dict]:
        with get_db() as db:
            query = db.query(Profile)
            if role is not None:
                try:
                    query = query.filter(Profile.role == ProfileRole(role))
                except ValueError:
                    raise ValidationError('Role must be student or teacher')
            return [profile_to_dict(p) for p in query.order_by(Profile.id).all()]
