from functools import wraps
from typing import Optional, Tuple
from flask import request, jsonify
from educhain.utils.security import verify_token
from educhain.utils.logger import get_logger

logger = get_logger(__name__)


def _bearer_token() -> Tuple[Optional[str], Optional[str]]:
    """(token, error) from the Authorization header"""
    auth_header = request.headers.get('Authorization')
    if not auth_header:
        return None, 'Authorization header missing'

    parts = auth_header.split()
    if len(parts) != 2 or parts[0] != 'Bearer':
        return None, 'Invalid authorization header format'
    return parts[1], None


def current_wallet_address() -> Optional[str]:
    """Lowercase wallet address of the connected user, if any"""
    token, _ = _bearer_token()
    payload = verify_token(token) if token else None
    return payload.get('wallet_address') if payload else None


def require_auth(f):
    """Decorator to require a connected wallet"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token, error = _bearer_token()
        if error:
            return jsonify({'error': error}), 401

        # Verify token
        payload = verify_token(token)
        if not payload:
            return jsonify({'error': 'Invalid or expired token'}), 401

        # Add user info to kwargs
        return f(current_user=payload, *args, **kwargs)

    return decorated_function


def require_profile(f):
    """Decorator to require a wallet that has completed onboarding"""
    @wraps(f)
    def decorated_function(current_user, *args, **kwargs):
        if not current_user.get('profile_id'):
            return jsonify({'error': 'Complete your profile setup first'}), 403
        return f(current_user, *args, **kwargs)
    return decorated_function


def require_role(allowed_roles):
    """Decorator to require specific roles"""
    def decorator(f):
        @wraps(f)
        def decorated_function(current_user, *args, **kwargs):
            if current_user.get('role') not in allowed_roles:
                return jsonify({'error': 'Insufficient permissions'}), 403
            return f(current_user, *args, **kwargs)
        return decorated_function
    return decorator


def require_teacher(f):
    """Decorator to require teacher role"""
    return require_role(['teacher'])(f)


def require_student(f):
    """Decorator to require student role"""
    return require_role(['student'])(f)
