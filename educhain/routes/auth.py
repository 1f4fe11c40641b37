from flask import Blueprint, request, jsonify
from educhain.errors import ValidationError
from educhain.services.profile_service import ProfileService
from educhain.middleware.auth import current_wallet_address, require_auth
from educhain.utils.security import generate_session_token
from educhain.utils.validators import normalize_wallet_address
from educhain.utils.logger import get_logger

bp = Blueprint('auth', __name__)
logger = get_logger(__name__)
profile_service = ProfileService()


@bp.route('/connect', methods=['POST'])
def connect():
    """Start a session for a connected wallet.

    The address is taken as given: wallet ownership (a signed message from
    the wallet provider) is verified upstream, not here.
    """
    data = request.get_json(silent=True) or {}

    valid, address = normalize_wallet_address(data.get('wallet_address'))
    if not valid:
        raise ValidationError(address)

    profile = profile_service.get_profile_by_wallet(address)

    return jsonify({
        'access_token': generate_session_token(address, profile),
        'profile': profile,
        'needs_setup': profile is None
    }), 200


@bp.route('/setup', methods=['POST'])
@require_auth
def setup(current_user):
    """Create the profile for the connected wallet"""
    data = request.get_json(silent=True) or {}

    for field in ['username', 'role']:
        if not data.get(field):
            raise ValidationError(f'{field} is required')

    profile = profile_service.create_profile(
        current_wallet_address(), data['username'], data['role']
    )

    return jsonify({
        'access_token': generate_session_token(profile['wallet_address'], profile),
        'profile': profile
    }), 201
