import pytest
from conftest import future_deadline
from educhain.database import DatabaseManager
from educhain.errors import (
    AlreadyMentorError, AuthorizationError, DuplicateError, DuplicateReviewError,
    NotEligibleError, SelfVoteError, ValidationError
)
from educhain.models import Enrollment, Profile
from educhain.services.homework_service import HomeworkService
from educhain.services.reputation_service import ReputationService


@pytest.fixture
def services(db):
    return HomeworkService(), ReputationService()


def submitted_work(homework_service, teacher, student, title='Essay'):
    """Homework the student has enrolled in and handed in"""
    homework = homework_service.create_homework(
        teacher['id'], {'title': title, 'max_students': 5, 'deadline': future_deadline()}
    )
    enrollment = homework_service.enroll(student['id'], homework['id'])
    homework_service.complete_enrollment(enrollment['id'], submission_text='Done')
    return homework


class TestReviews:
    """Test reviews and rating recompute"""

    def test_rating_is_mean_of_stars(self, services, make_profile):
        homework_service, reputation_service = services
        teacher = make_profile('teacher')
        student = make_profile('student')

        for stars in [5, 3, 4]:
            homework = submitted_work(homework_service, teacher, student)
            result = reputation_service.record_review(teacher['id'], student['id'], homework['id'], stars)

        assert result['student_rating'] == 4.0
        assert result['student_total_reviews'] == 3

        profile = DatabaseManager(Profile).get(student['id'])
        assert profile.rating == 4.0
        assert profile.total_reviews == 3
        assert profile.completed_count == 3

    def test_rating_rounded(self, services, make_profile):
        homework_service, reputation_service = services
        teacher = make_profile('teacher')
        student = make_profile('student')

        for stars in [5, 4, 4]:
            homework = submitted_work(homework_service, teacher, student)
            result = reputation_service.record_review(teacher['id'], student['id'], homework['id'], stars)

        assert result['student_rating'] == 4.33
        assert DatabaseManager(Profile).get(student['id']).rating == pytest.approx(13 / 3)

    def test_duplicate_review(self, services, make_profile):
        homework_service, reputation_service = services
        teacher = make_profile('teacher')
        student = make_profile('student')
        homework = submitted_work(homework_service, teacher, student)

        reputation_service.record_review(teacher['id'], student['id'], homework['id'], 5)
        with pytest.raises(DuplicateError) as exc_info:
            reputation_service.record_review(teacher['id'], student['id'], homework['id'], 1)
        assert isinstance(exc_info.value, DuplicateReviewError)

        profile = DatabaseManager(Profile).get(student['id'])
        assert profile.total_reviews == 1
        assert profile.rating == 5.0
        assert profile.completed_count == 1

    def test_review_marks_enrollment_reviewed(self, services, make_profile):
        homework_service, reputation_service = services
        teacher = make_profile('teacher')
        student = make_profile('student')
        homework = submitted_work(homework_service, teacher, student)

        reputation_service.record_review(teacher['id'], student['id'], homework['id'], 4, 'Nice')

        enrollment = DatabaseManager(Enrollment).get_by(student_id=student['id'], homework_id=homework['id'])
        assert enrollment.status.value == 'reviewed'
        assert enrollment.review_score == 4
        assert enrollment.review_comment == 'Nice'

    def test_review_requires_submission(self, services, make_profile):
        homework_service, reputation_service = services
        teacher = make_profile('teacher')
        student = make_profile('student')
        homework = homework_service.create_homework(teacher['id'], {'title': 'Essay'})
        homework_service.enroll(student['id'], homework['id'])

        with pytest.raises(ValidationError):
            reputation_service.record_review(teacher['id'], student['id'], homework['id'], 5)

        assert reputation_service.get_reviews(student_id=student['id']) == []
        assert DatabaseManager(Profile).get(student['id']).total_reviews == 0

    def test_only_owner_reviews(self, services, make_profile):
        homework_service, reputation_service = services
        teacher = make_profile('teacher')
        other_teacher = make_profile('teacher')
        student = make_profile('student')
        homework = submitted_work(homework_service, teacher, student)

        with pytest.raises(AuthorizationError):
            reputation_service.record_review(other_teacher['id'], student['id'], homework['id'], 5)

    @pytest.mark.parametrize('comment', [42, ['Nice'], {'text': 'Nice'}])
    def test_comment_must_be_text(self, services, make_profile, comment):
        homework_service, reputation_service = services
        teacher = make_profile('teacher')
        student = make_profile('student')
        homework = submitted_work(homework_service, teacher, student)

        with pytest.raises(ValidationError):
            reputation_service.record_review(teacher['id'], student['id'], homework['id'], 5, comment)

        assert DatabaseManager(Profile).get(student['id']).total_reviews == 0

    @pytest.mark.parametrize('stars', [0, 6, 4.5, True, '5'])
    def test_invalid_stars(self, services, make_profile, stars):
        homework_service, reputation_service = services
        teacher = make_profile('teacher')
        student = make_profile('student')
        homework = submitted_work(homework_service, teacher, student)

        with pytest.raises(ValidationError):
            reputation_service.record_review(teacher['id'], student['id'], homework['id'], stars)


class TestVotes:
    """Test DAO up/down votes"""

    def test_upvote_twice_toggles_off(self, services, make_profile):
        _, reputation_service = services
        voter = make_profile('student')
        target = make_profile('student')

        first = reputation_service.cast_vote(voter['id'], target['id'], 'upvote')
        assert first['upvotes'] == 1
        assert first['my_vote'] == 'upvote'

        second = reputation_service.cast_vote(voter['id'], target['id'], 'upvote')
        assert second['upvotes'] == 0
        assert second['my_vote'] is None

    def test_switch_vote(self, services, make_profile):
        _, reputation_service = services
        voter = make_profile('teacher')
        target = make_profile('student')

        reputation_service.cast_vote(voter['id'], target['id'], 'upvote')
        result = reputation_service.cast_vote(voter['id'], target['id'], 'downvote')

        assert result['upvotes'] == 0
        assert result['downvotes'] == 1
        assert result['my_vote'] == 'downvote'

    def test_votes_from_many_voters(self, services, make_profile):
        _, reputation_service = services
        target = make_profile('student')
        for _ in range(3):
            voter = make_profile('student')
            reputation_service.cast_vote(voter['id'], target['id'], 'upvote')

        profile = DatabaseManager(Profile).get(target['id'])
        assert profile.upvotes == 3
        assert profile.downvotes == 0

    def test_self_vote_forbidden(self, services, make_profile):
        _, reputation_service = services
        voter = make_profile('student')

        with pytest.raises(SelfVoteError):
            reputation_service.cast_vote(voter['id'], voter['id'], 'upvote')

    def test_self_vote_with_string_id(self, services, make_profile):
        _, reputation_service = services
        voter = make_profile('student')

        with pytest.raises(SelfVoteError):
            reputation_service.cast_vote(voter['id'], str(voter['id']), 'upvote')

        assert DatabaseManager(Profile).get(voter['id']).upvotes == 0

    @pytest.mark.parametrize('target_id', ['abc', None, 1.5, True])
    def test_invalid_target_id(self, services, make_profile, target_id):
        _, reputation_service = services
        voter = make_profile('student')

        with pytest.raises(ValidationError):
            reputation_service.cast_vote(voter['id'], target_id, 'upvote')

    def test_unknown_vote_type(self, services, make_profile):
        _, reputation_service = services
        voter = make_profile('student')
        target = make_profile('student')

        with pytest.raises(ValidationError):
            reputation_service.cast_vote(voter['id'], target['id'], 'sideways')

    def test_listing_shows_my_vote(self, services, make_profile):
        _, reputation_service = services
        voter = make_profile('student')
        popular = make_profile('student')
        other = make_profile('teacher')

        reputation_service.cast_vote(voter['id'], popular['id'], 'upvote')
        reputation_service.cast_vote(voter['id'], other['id'], 'downvote')

        listing = reputation_service.list_profiles_for_voter(voter['id'])
        assert [p['id'] for p in listing] == [popular['id'], other['id']]
        assert listing[0]['my_vote'] == 'upvote'
        assert listing[1]['my_vote'] == 'downvote'


class TestMentorUpgrade:
    """Test mentor eligibility and upgrade"""

    def test_not_eligible_below_rating(self, services, make_profile):
        _, reputation_service = services
        student = make_profile('student')
        DatabaseManager(Profile).update(student['id'], rating=3.9, completed_count=5)

        assert reputation_service.check_mentor_eligibility(student['id']) is False
        with pytest.raises(NotEligibleError):
            reputation_service.upgrade_to_mentor(student['id'])
        assert DatabaseManager(Profile).get(student['id']).is_mentor is False

    def test_eligible_at_threshold(self, services, make_profile):
        _, reputation_service = services
        student = make_profile('student')
        DatabaseManager(Profile).update(student['id'], rating=4.0, completed_count=3)

        assert reputation_service.check_mentor_eligibility(student['id']) is True
        profile = reputation_service.upgrade_to_mentor(student['id'])
        assert profile['is_mentor'] is True

    def test_threshold_uses_exact_rating(self, services, make_profile):
        """A mean that displays as 4.0 but is below it does not qualify"""
        _, reputation_service = services
        student = make_profile('student')
        DatabaseManager(Profile).update(student['id'], rating=1199 / 300, completed_count=3)

        assert reputation_service.get_mentor_status(student['id'])['rating'] == 4.0
        assert reputation_service.check_mentor_eligibility(student['id']) is False
        with pytest.raises(NotEligibleError):
            reputation_service.upgrade_to_mentor(student['id'])

    def test_upgrade_twice(self, services, make_profile):
        _, reputation_service = services
        student = make_profile('student')
        DatabaseManager(Profile).update(student['id'], rating=5.0, completed_count=3)
        reputation_service.upgrade_to_mentor(student['id'])

        with pytest.raises(AlreadyMentorError):
            reputation_service.upgrade_to_mentor(student['id'])

    def test_teachers_cannot_become_mentors(self, services, make_profile):
        _, reputation_service = services
        teacher = make_profile('teacher')
        DatabaseManager(Profile).update(teacher['id'], rating=5.0, completed_count=10)

        with pytest.raises(NotEligibleError):
            reputation_service.upgrade_to_mentor(teacher['id'])

    def test_mentor_status(self, services, make_profile):
        _, reputation_service = services
        student = make_profile('student')
        DatabaseManager(Profile).update(student['id'], rating=4.5, completed_count=2)

        status = reputation_service.get_mentor_status(student['id'])
        assert status['eligible'] is False
        assert status['completed_count'] == 2
        assert status['required_completed'] == 3
