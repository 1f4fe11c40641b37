from flask import Blueprint, request, jsonify
from educhain.errors import ValidationError
from educhain.services.question_service import QuestionService
from educhain.middleware.auth import require_auth, require_profile, require_student
from educhain.utils.logger import get_logger

bp = Blueprint('questions', __name__)
logger = get_logger(__name__)
question_service = QuestionService()


def _parse_bool(value):
    if value is None:
        return None
    return value.lower() in ('1', 'true', 'yes')


@bp.route('', methods=['GET'])
@require_auth
def list_questions(current_user):
    """Questions filtered by homework, student or answered state"""
    homework_id = request.args.get('homework_id', type=int)
    student_id = request.args.get('student_id', type=int)
    is_answered = _parse_bool(request.args.get('answered'))

    questions = question_service.get_questions(
        student_id=student_id, homework_id=homework_id, is_answered=is_answered
    )
    return jsonify(questions), 200


@bp.route('', methods=['POST'])
@require_auth
@require_profile
@require_student
def ask_question(current_user):
    data = request.get_json(silent=True) or {}

    if not data.get('homework_id'):
        raise ValidationError('homework_id is required')

    question = question_service.ask_question(
        current_user['profile_id'], data['homework_id'], data.get('question_text')
    )
    return jsonify(question), 201


@bp.route('/mentorable', methods=['GET'])
@require_auth
@require_profile
@require_student
def list_mentorable(current_user):
    return jsonify(question_service.get_mentorable_questions()), 200


@bp.route('/<int:question_id>/answers', methods=['POST'])
@require_auth
@require_profile
def answer_question(current_user, question_id):
    """Teachers answer their own homework's questions; mentors earn tokens"""
    data = request.get_json(silent=True) or {}

    answer = question_service.record_answer(
        question_id,
        current_user['profile_id'],
        data.get('answer_text'),
        is_from_teacher=current_user.get('role') == 'teacher'
    )
    return jsonify(answer), 201
