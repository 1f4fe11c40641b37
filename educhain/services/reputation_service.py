from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from educhain.database import get_db
from educhain.errors import (
    AlreadyMentorError, AuthorizationError, DuplicateError, DuplicateReviewError,
    NotEligibleError, NotFoundError, SelfVoteError, ValidationError
)
from educhain.models import Enrollment, Homework, Profile, Review, Submission, Vote
from educhain.models.enrollment import EnrollmentStatus, SubmissionStatus
from educhain.models.profile import ProfileRole
from educhain.models.vote import VoteType
from educhain.services.serializers import profile_to_dict, review_to_dict
from educhain.utils.validators import parse_id, validate_stars
from config.config import Config
from educhain.utils.logger import get_logger

logger = get_logger(__name__)

COUNTER_FOR_VOTE = {
    VoteType.UPVOTE: 'upvotes',
    VoteType.DOWNVOTE: 'downvotes'
}


def recompute_rating(db, student_id: int):
    """Set rating and total_reviews from the full stored review set.

    Always recomputed from the reviews table instead of a running average,
    so concurrent reviews can't lose each other's stars.
    The exact mean is stored; API output rounds it to two decimals.
    """
    count, average = db.query(
        func.count(Review.id), func.avg(Review.stars)
    ).filter(Review.student_id == student_id).one()

    rating = float(average) if count else 0.0
    db.query(Profile).filter(Profile.id == student_id).update(
        {Profile.rating: rating, Profile.total_reviews: count},
        synchronize_session=False
    )
    return rating, count


def adjust_counters(db, profile_id: int, **deltas):
    """Atomic ``col = col + delta`` on profile counters"""
    values = {
        getattr(Profile, column): getattr(Profile, column) + delta
        for column, delta in deltas.items() if delta
    }
    if values:
        db.query(Profile).filter(Profile.id == profile_id).update(values, synchronize_session=False)


def is_mentor_eligible(profile: Profile) -> bool:
    return (
        profile.rating >= Config.MENTOR_MIN_RATING
        and profile.completed_count >= Config.MENTOR_MIN_COMPLETED
    )


class ReputationService:
    """Service for reviews, DAO votes and mentor status"""

    def record_review(self, reviewer_id: int, student_id: int, homework_id: int,
                      stars: int, comment: Optional[str] = None) -> Dict:
        """Review a student's completed enrollment and refresh their reputation"""
        valid, student_id = parse_id(student_id, 'student_id')
        if not valid:
            raise ValidationError(student_id)
        valid, error = validate_stars(stars)
        if not valid:
            raise ValidationError(error)
        if comment is not None:
            if not isinstance(comment, str):
                raise ValidationError('Comment must be text')
            comment = comment.strip() or None
            if comment and len(comment) > 1000:
                raise ValidationError('Comment must be at most 1000 characters')

        try:
            with get_db() as db:
                homework = db.query(Homework).filter_by(id=homework_id).first()
                if not homework:
                    raise NotFoundError('Homework not found')
                if homework.teacher_id != reviewer_id:
                    raise AuthorizationError('You can only review students on your own homeworks')

                enrollment = db.query(Enrollment).filter_by(
                    student_id=student_id,
                    homework_id=homework_id
                ).first()
                if not enrollment:
                    raise NotFoundError('Student is not enrolled in this homework')

                existing = db.query(Review).filter_by(
                    reviewer_id=reviewer_id,
                    student_id=student_id,
                    homework_id=homework_id
                ).first()
                if existing:
                    raise DuplicateReviewError()

                review = Review(
                    reviewer_id=reviewer_id,
                    student_id=student_id,
                    homework_id=homework_id,
                    stars=stars,
                    comment=comment
                )
                db.add(review)
                db.flush()

                # completed -> reviewed happens once; completed_count follows it
                transitioned = db.query(Enrollment).filter(
                    Enrollment.id == enrollment.id,
                    Enrollment.status == EnrollmentStatus.COMPLETED
                ).update({
                    Enrollment.status: EnrollmentStatus.REVIEWED,
                    Enrollment.review_score: stars,
                    Enrollment.review_comment: comment
                }, synchronize_session=False)
                if not transitioned:
                    raise ValidationError('Only submitted work can be reviewed')

                db.query(Submission).filter(
                    Submission.enrollment_id == enrollment.id,
                    Submission.status == SubmissionStatus.SUBMITTED
                ).update({
                    Submission.status: SubmissionStatus.REVIEWED,
                    Submission.reviewed_at: datetime.utcnow()
                }, synchronize_session=False)

                adjust_counters(db, student_id, completed_count=1)
                rating, total_reviews = recompute_rating(db, student_id)

                logger.info(
                    f"Teacher {reviewer_id} reviewed student {student_id} on homework "
                    f"{homework_id}: {stars} stars, rating now {rating:.2f}"
                )

                result = review_to_dict(review)
                result.update({'student_rating': round(rating, 2), 'student_total_reviews': total_reviews})
                return result

        except IntegrityError:
            # Lost a race with an identical review
            raise DuplicateReviewError()

    def get_reviews(self, student_id: int = None, homework_id: int = None,
                    reviewer_id: int = None) -> List[Dict]:
        """Reviews matching the given filters, newest first"""
        with get_db() as db:
            query = db.query(Review)
            if student_id is not None:
                query = query.filter(Review.student_id == student_id)
            if homework_id is not None:
                query = query.filter(Review.homework_id == homework_id)
            if reviewer_id is not None:
                query = query.filter(Review.reviewer_id == reviewer_id)
            reviews = query.order_by(Review.created_at.desc(), Review.id.desc()).all()
            return [review_to_dict(r) for r in reviews]

    def cast_vote(self, voter_id: int, target_id: int, vote_type) -> Dict:
        """Create, toggle off or switch a DAO vote on another profile"""
        valid, target_id = parse_id(target_id, 'target_id')
        if not valid:
            raise ValidationError(target_id)
        try:
            vote_type = VoteType(vote_type) if isinstance(vote_type, str) else vote_type
        except ValueError:
            raise ValidationError('Vote type must be upvote or downvote')
        if not isinstance(vote_type, VoteType):
            raise ValidationError('Vote type must be upvote or downvote')
        if voter_id == target_id:
            raise SelfVoteError()

        try:
            with get_db() as db:
                voter = db.query(Profile).filter_by(id=voter_id).first()
                if not voter:
                    raise NotFoundError('Voter not found')
                target = db.query(Profile).filter_by(id=target_id).first()
                if not target:
                    raise NotFoundError('Profile not found')

                vote = db.query(Vote).filter_by(voter_id=voter_id, voted_for_id=target_id).first()
                counter = COUNTER_FOR_VOTE[vote_type]

                if vote is None:
                    db.add(Vote(
                        voter_id=voter_id,
                        voted_for_id=target_id,
                        vote_type=vote_type,
                        voter_role=voter.role
                    ))
                    db.flush()
                    adjust_counters(db, target_id, **{counter: 1})
                    current = vote_type
                elif vote.vote_type == vote_type:
                    db.delete(vote)
                    db.flush()
                    adjust_counters(db, target_id, **{counter: -1})
                    current = None
                else:
                    old_counter = COUNTER_FOR_VOTE[vote.vote_type]
                    vote.vote_type = vote_type
                    db.flush()
                    adjust_counters(db, target_id, **{old_counter: -1, counter: 1})
                    current = vote_type

                db.refresh(target)
                logger.info(
                    f"Profile {voter_id} {vote_type.value} on {target_id}: "
                    f"now {current.value if current else 'no vote'}"
                )

                return {
                    'target_id': target_id,
                    'my_vote': current.value if current else None,
                    'upvotes': target.upvotes,
                    'downvotes': target.downvotes
                }

        except IntegrityError:
            raise DuplicateError('Your vote is already being recorded')

    def list_profiles_for_voter(self, voter_id: int) -> List[Dict]:
        """All other profiles with the voter's current vote, most upvoted first"""
        with get_db() as db:
            profiles = db.query(Profile).filter(Profile.id != voter_id).order_by(
                Profile.upvotes.desc(), Profile.id.asc()
            ).all()
            my_votes = {
                v.voted_for_id: v.vote_type.value
                for v in db.query(Vote).filter_by(voter_id=voter_id).all()
            }

            results = []
            for profile in profiles:
                data = profile_to_dict(profile)
                data['my_vote'] = my_votes.get(profile.id)
                results.append(data)
            return results

    def check_mentor_eligibility(self, student_id: int) -> bool:
        """rating >= 4.0 and completed_count >= 3"""
        with get_db() as db:
            student = db.query(Profile).filter_by(id=student_id).first()
            if not student:
                raise NotFoundError('Student not found')
            return is_mentor_eligible(student)

    def get_mentor_status(self, student_id: int) -> Dict:
        """Eligibility together with the numbers behind it"""
        with get_db() as db:
            student = db.query(Profile).filter_by(id=student_id).first()
            if not student:
                raise NotFoundError('Student not found')
            return {
                'is_mentor': student.is_mentor,
                'eligible': student.role == ProfileRole.STUDENT and is_mentor_eligible(student),
                'rating': round(student.rating, 2),
                'completed_count': student.completed_count,
                'required_rating': Config.MENTOR_MIN_RATING,
                'required_completed': Config.MENTOR_MIN_COMPLETED
            }

    def upgrade_to_mentor(self, student_id: int) -> Dict:
        """One-way upgrade of an eligible student to mentor"""
        with get_db() as db:
            student = db.query(Profile).filter_by(id=student_id).first()
            if not student:
                raise NotFoundError('Student not found')
            if student.role != ProfileRole.STUDENT:
                raise NotEligibleError('Only students can become mentors')
            if student.is_mentor:
                raise AlreadyMentorError()
            if not is_mentor_eligible(student):
                raise NotEligibleError(
                    f'You need a rating of at least {Config.MENTOR_MIN_RATING:g} and '
                    f'{Config.MENTOR_MIN_COMPLETED} completed homeworks to become a mentor'
                )

            updated = db.query(Profile).filter(
                Profile.id == student_id,
                Profile.is_mentor.is_(False)
            ).update({Profile.is_mentor: True}, synchronize_session=False)
            if not updated:
                raise AlreadyMentorError()

            db.refresh(student)
            logger.info(f"Student {student_id} upgraded to mentor")
            return profile_to_dict(student)
