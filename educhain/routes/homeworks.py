from flask import Blueprint, request, jsonify
from educhain.errors import AuthorizationError, ValidationError
from educhain.services.homework_service import HomeworkService
from educhain.services.reputation_service import ReputationService
from educhain.middleware.auth import require_auth, require_profile, require_student, require_teacher
from educhain.utils.logger import get_logger

bp = Blueprint('homeworks', __name__)
logger = get_logger(__name__)
homework_service = HomeworkService()
reputation_service = ReputationService()


def _request_data():
    """JSON body, or form fields for multipart uploads"""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _uploaded_files():
    return [f for f in request.files.getlist('files') if f and f.filename]


def _require_owner(homework_id, teacher_id):
    homework = homework_service.get_homework(homework_id)
    if homework['teacher_id'] != teacher_id:
        raise AuthorizationError('This is not your homework')
    return homework


@bp.route('', methods=['GET'])
@require_auth
def list_available(current_user):
    """Active homeworks with free slots"""
    return jsonify(homework_service.get_available_homeworks()), 200


@bp.route('', methods=['POST'])
@require_auth
@require_profile
@require_teacher
def create_homework(current_user):
    """Create a homework (costs tokens) with optional resource files"""
    result = homework_service.create_homework(
        current_user['profile_id'], _request_data(), _uploaded_files()
    )
    return jsonify(result), 201


@bp.route('/mine', methods=['GET'])
@require_auth
@require_profile
@require_teacher
def list_mine(current_user):
    return jsonify(homework_service.get_teacher_homeworks(current_user['profile_id'])), 200


@bp.route('/<int:homework_id>', methods=['GET'])
@require_auth
def get_homework(current_user, homework_id):
    return jsonify(homework_service.get_homework(homework_id)), 200


@bp.route('/<int:homework_id>/enroll', methods=['POST'])
@require_auth
@require_profile
@require_student
def enroll(current_user, homework_id):
    enrollment = homework_service.enroll(current_user['profile_id'], homework_id)
    return jsonify(enrollment), 201


@bp.route('/<int:homework_id>/enrollments', methods=['GET'])
@require_auth
@require_profile
@require_teacher
def list_enrollments(current_user, homework_id):
    _require_owner(homework_id, current_user['profile_id'])
    status = request.args.get('status')
    return jsonify(homework_service.get_enrollments(homework_id=homework_id, status=status)), 200


@bp.route('/<int:homework_id>/reviews', methods=['GET'])
@require_auth
def list_reviews(current_user, homework_id):
    return jsonify(reputation_service.get_reviews(homework_id=homework_id)), 200


@bp.route('/<int:homework_id>/reviews', methods=['POST'])
@require_auth
@require_profile
@require_teacher
def review_student(current_user, homework_id):
    """Rate a student's submitted work on this homework"""
    data = request.get_json(silent=True) or {}

    for field in ['student_id', 'stars']:
        if field not in data:
            raise ValidationError(f'{field} is required')

    review = reputation_service.record_review(
        current_user['profile_id'], data['student_id'], homework_id,
        data['stars'], data.get('comment')
    )
    return jsonify(review), 201


@bp.route('/enrollments/mine', methods=['GET'])
@require_auth
@require_profile
@require_student
def list_my_enrollments(current_user):
    status = request.args.get('status')
    return jsonify(homework_service.get_enrollments(student_id=current_user['profile_id'], status=status)), 200


@bp.route('/enrollments/<int:enrollment_id>/submit', methods=['POST'])
@require_auth
@require_profile
@require_student
def submit_enrollment(current_user, enrollment_id):
    """Hand in work with optional text and files"""
    data = _request_data()
    result = homework_service.complete_enrollment(
        enrollment_id,
        student_id=current_user['profile_id'],
        submission_text=data.get('submission_text'),
        files=_uploaded_files()
    )
    return jsonify(result), 200


@bp.route('/enrollments/deadlines', methods=['POST'])
@require_auth
@require_profile
@require_student
def check_deadlines(current_user):
    """Apply missed-deadline penalties for the current student"""
    applied = homework_service.apply_deadline_penalties(student_id=current_user['profile_id'])
    return jsonify({'penalties': applied}), 200
