from .logger import setup_logger, get_logger
from .security import generate_token, verify_token, generate_session_token
from .validators import (
    normalize_wallet_address, validate_username, validate_stars, validate_text, parse_deadline, parse_id
)

__all__ = [
    'setup_logger', 'get_logger',
    'generate_token', 'verify_token', 'generate_session_token',
    'normalize_wallet_address', 'validate_username', 'validate_stars', 'validate_text',
    'parse_deadline', 'parse_id'
]
