from flask import Blueprint, jsonify
from educhain.services.ledger_service import LedgerService
from educhain.services.profile_service import ProfileService
from educhain.services.reputation_service import ReputationService
from educhain.middleware.auth import require_auth, require_profile, require_student
from educhain.utils.logger import get_logger

bp = Blueprint('profiles', __name__)
logger = get_logger(__name__)
profile_service = ProfileService()
ledger_service = LedgerService()
reputation_service = ReputationService()


@bp.route('/me', methods=['GET'])
@require_auth
@require_profile
def get_my_profile(current_user):
    return jsonify(profile_service.get_profile(current_user['profile_id'])), 200


@bp.route('/<int:profile_id>', methods=['GET'])
@require_auth
def get_profile(current_user, profile_id):
    return jsonify(profile_service.get_profile(profile_id)), 200


@bp.route('/<int:profile_id>/reviews', methods=['GET'])
@require_auth
def get_profile_reviews(current_user, profile_id):
    """Reviews a student has received"""
    return jsonify(reputation_service.get_reviews(student_id=profile_id)), 200


@bp.route('/me/transactions', methods=['GET'])
@require_auth
@require_profile
def get_transactions(current_user):
    return jsonify(ledger_service.get_transactions(current_user['profile_id'])), 200


@bp.route('/me/balance', methods=['GET'])
@require_auth
@require_profile
def get_balance(current_user):
    return jsonify(ledger_service.get_balance_summary(current_user['profile_id'])), 200


@bp.route('/me/mentor-eligibility', methods=['GET'])
@require_auth
@require_profile
@require_student
def get_mentor_eligibility(current_user):
    return jsonify(reputation_service.get_mentor_status(current_user['profile_id'])), 200


@bp.route('/me/mentor', methods=['POST'])
@require_auth
@require_profile
@require_student
def become_mentor(current_user):
    profile = reputation_service.upgrade_to_mentor(current_user['profile_id'])
    return jsonify({'message': 'You are now a mentor', 'profile': profile}), 200


@bp.route('/me/data', methods=['GET'])
@require_auth
@require_profile
def view_my_data(current_user):
    return jsonify(profile_service.get_account_data(current_user['profile_id'])), 200


@bp.route('/me/export', methods=['GET'])
@require_auth
@require_profile
def export_my_data(current_user):
    data = profile_service.export_account_data(current_user['profile_id'])
    response = jsonify(data)
    response.headers['Content-Disposition'] = 'attachment; filename=educhain-data.json'
    return response, 200


@bp.route('/me', methods=['DELETE'])
@require_auth
@require_profile
def delete_my_account(current_user):
    result = profile_service.delete_account(current_user['profile_id'])
    return jsonify(result), 200
