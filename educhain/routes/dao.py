from flask import Blueprint, request, jsonify
from educhain.errors import ValidationError
from educhain.services.reputation_service import ReputationService
from educhain.middleware.auth import require_auth, require_profile
from educhain.utils.logger import get_logger

bp = Blueprint('dao', __name__)
logger = get_logger(__name__)
reputation_service = ReputationService()


@bp.route('/profiles', methods=['GET'])
@require_auth
@require_profile
def list_profiles(current_user):
    """Everyone else, most upvoted first, with my current vote"""
    return jsonify(reputation_service.list_profiles_for_voter(current_user['profile_id'])), 200


@bp.route('/votes', methods=['POST'])
@require_auth
@require_profile
def cast_vote(current_user):
    data = request.get_json(silent=True) or {}

    for field in ['target_id', 'vote_type']:
        if not data.get(field):
            raise ValidationError(f'{field} is required')

    result = reputation_service.cast_vote(
        current_user['profile_id'], data['target_id'], data['vote_type']
    )
    return jsonify(result), 200
