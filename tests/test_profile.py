import pytest
from io import BytesIO
from unittest.mock import Mock
from werkzeug.datastructures import FileStorage
from conftest import wallet
from educhain.database import DatabaseManager
from educhain.errors import DuplicateError, NotFoundError, ValidationError
from educhain.models import DataAccessLog, Enrollment, Homework, Profile, Review, TokenTransaction, Vote
from educhain.services.homework_service import HomeworkService
from educhain.services.ledger_service import LedgerService
from educhain.services.profile_service import ProfileService
from educhain.services.question_service import QuestionService
from educhain.services.reputation_service import ReputationService


@pytest.fixture
def storage():
    storage = Mock()
    storage.delete.return_value = True
    return storage


@pytest.fixture
def profile_service(db, storage):
    return ProfileService(storage=storage)


class TestOnboarding:
    """Test wallet onboarding"""

    def test_create_profile(self, profile_service):
        address = '0xABCDEF0000000000000000000000000000000001'
        profile = profile_service.create_profile(address, 'ada', 'teacher')

        assert profile['wallet_address'] == address.lower()
        assert profile['role'] == 'teacher'
        assert profile['rating'] == 0
        assert profile['is_mentor'] is False
        assert profile['token_balance'] == 1000

        assert profile_service.get_profile_by_wallet(address)['id'] == profile['id']

    def test_unknown_wallet(self, profile_service):
        assert profile_service.get_profile_by_wallet(wallet(99)) is None

    def test_duplicate_wallet(self, profile_service):
        profile_service.create_profile(wallet(0xabc), 'ada', 'student')

        with pytest.raises(DuplicateError):
            profile_service.create_profile(wallet(0xabc).replace('abc', 'ABC'), 'ada2', 'teacher')

        assert DatabaseManager(TokenTransaction).count() == 1

    @pytest.mark.parametrize('address, username, role', [
        ('not-a-wallet', 'ada', 'student'),
        (wallet(1), 'a', 'student'),
        (wallet(1), 'ada', 'admin'),
        (123, 'ada', 'student'),
        (wallet(1), 12345, 'student'),
        (wallet(1), 'ada', ['student']),
    ])
    def test_invalid_onboarding(self, profile_service, address, username, role):
        with pytest.raises(ValidationError):
            profile_service.create_profile(address, username, role)

        assert DatabaseManager(Profile).count() == 0

    def test_list_profiles_by_role(self, profile_service, make_profile):
        make_profile('teacher')
        make_profile('student')
        make_profile('student')

        assert len(profile_service.list_profiles(role='student')) == 2
        assert len(profile_service.list_profiles()) == 3


class TestAccountData:
    """Test personal data view, export and deletion"""

    def test_view_is_logged(self, profile_service, make_profile):
        student = make_profile('student')

        data = profile_service.get_account_data(student['id'])
        profile_service.export_account_data(student['id'])

        assert data['profile']['id'] == student['id']
        assert data['transactions'][0]['type'] == 'initial'
        logs = DatabaseManager(DataAccessLog).filter(wallet_address=student['wallet_address'])
        assert sorted(log.action.value for log in logs) == ['export', 'view']

    def test_delete_missing_profile(self, profile_service):
        with pytest.raises(NotFoundError):
            profile_service.delete_account(12345)

    def test_delete_student_cascades(self, profile_service, storage, make_profile):
        homework_service = HomeworkService(storage=Mock())
        reputation_service = ReputationService()

        teacher = make_profile('teacher')
        student = make_profile('student')
        peer = make_profile('student')
        homework = homework_service.create_homework(teacher['id'], {'title': 'Essay', 'max_students': 3})
        enrollment = homework_service.enroll(student['id'], homework['id'])
        homework_service.complete_enrollment(enrollment['id'], submission_text='Done')
        reputation_service.record_review(teacher['id'], student['id'], homework['id'], 5)
        reputation_service.cast_vote(student['id'], peer['id'], 'upvote')
        reputation_service.cast_vote(peer['id'], student['id'], 'upvote')

        result = profile_service.delete_account(student['id'])

        assert result['deleted'] is True
        assert DatabaseManager(Profile).get(student['id']) is None
        assert DatabaseManager(Enrollment).count() == 0
        assert DatabaseManager(Review).count() == 0
        assert DatabaseManager(Vote).count() == 0
        assert DatabaseManager(TokenTransaction).count(profile_id=student['id']) == 0

        # Vote retracted from the peer, slot returned to the homework
        assert DatabaseManager(Profile).get(peer['id']).upvotes == 0
        assert DatabaseManager(Homework).get(homework['id']).current_students == 0

        logs = DatabaseManager(DataAccessLog).filter(wallet_address=student['wallet_address'])
        assert [log.action.value for log in logs] == ['delete']

    def test_delete_teacher_recomputes_ratings(self, profile_service, storage, make_profile):
        homework_service = HomeworkService(storage=Mock())
        reputation_service = ReputationService()

        teacher = make_profile('teacher')
        other_teacher = make_profile('teacher')
        student = make_profile('student')

        first = homework_service.create_homework(teacher['id'], {'title': 'First'})
        second = homework_service.create_homework(other_teacher['id'], {'title': 'Second'})
        for reviewer, homework, stars in [(teacher, first, 1), (other_teacher, second, 5)]:
            enrollment = homework_service.enroll(student['id'], homework['id'])
            homework_service.complete_enrollment(enrollment['id'])
            reputation_service.record_review(reviewer['id'], student['id'], homework['id'], stars)

        assert DatabaseManager(Profile).get(student['id']).rating == 3.0

        profile_service.delete_account(teacher['id'])

        profile = DatabaseManager(Profile).get(student['id'])
        assert profile.rating == 5.0
        assert profile.total_reviews == 1
        assert profile.completed_count == 2
        assert DatabaseManager(Homework).count() == 1

    def test_delete_removes_stored_files(self, profile_service, storage, make_profile):
        homework_service = HomeworkService(storage=Mock(**{
            'build_path.return_value': 'homeworks/1/notes.pdf',
            'upload.return_value': 'https://files.test/notes.pdf'
        }))
        teacher = make_profile('teacher')

        notes = FileStorage(stream=BytesIO(b'notes'), filename='notes.pdf', content_type='application/pdf')
        homework_service.create_homework(teacher['id'], {'title': 'Reading'}, files=[notes])
        storage.delete.return_value = False

        result = profile_service.delete_account(teacher['id'])

        storage.delete.assert_called_once_with('https://files.test/notes.pdf')
        assert result['files_removed'] == 0
        assert result['files_failed'] == 1


class TestStudentJourney:
    """A student earns a mentor role and is rewarded for answers"""

    def test_reviews_then_mentor_rewards(self, db, make_profile):
        homework_service = HomeworkService(storage=Mock())
        reputation_service = ReputationService()
        question_service = QuestionService()
        ledger_service = LedgerService()

        teacher = make_profile('teacher')
        student = make_profile('student')
        starting_balance = student['token_balance']

        homeworks = []
        for stars in [5, 3, 4]:
            homework = homework_service.create_homework(teacher['id'], {'title': 'Task', 'max_students': 5})
            enrollment = homework_service.enroll(student['id'], homework['id'])
            homework_service.complete_enrollment(enrollment['id'])
            review = reputation_service.record_review(teacher['id'], student['id'], homework['id'], stars)
            homeworks.append(homework)

        assert review['student_rating'] == 4.0
        assert review['student_total_reviews'] == 3
        assert reputation_service.upgrade_to_mentor(student['id'])['is_mentor'] is True

        for homework in homeworks:
            asker = make_profile('student')
            homework_service.enroll(asker['id'], homework['id'])
            question = question_service.ask_question(asker['id'], homework['id'], 'Hint please?')
            question_service.record_answer(question['id'], student['id'], 'Start small.', False)

        summary = ledger_service.get_balance_summary(student['id'])
        assert summary['token_balance'] == starting_balance + 1.5
        assert summary['consistent'] is True
