import re
from datetime import datetime
from typing import Optional, Tuple

WALLET_ADDRESS_PATTERN = re.compile(r'^0x[0-9a-fA-F]{40}$')
USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_.-]{3,50}$')


def normalize_wallet_address(address: str) -> Tuple[bool, Optional[str]]:
    """Validate an EVM wallet address and return it lowercased"""
    if not address:
        return False, "Wallet address is required"
    if not isinstance(address, str):
        return False, "Wallet address must be text"
    address = address.strip()
    if not WALLET_ADDRESS_PATTERN.match(address):
        return False, "Invalid wallet address"
    return True, address.lower()


def validate_username(username: str) -> Tuple[bool, Optional[str]]:
    """Validate display name"""
    if not username:
        return False, "Username is required"
    if not isinstance(username, str):
        return False, "Username must be text"
    if not USERNAME_PATTERN.match(username):
        return False, "Username must be 3-50 letters, digits, '.', '_' or '-'"
    return True, None


def validate_stars(stars) -> Tuple[bool, Optional[str]]:
    """Validate a 1-5 star rating"""
    if isinstance(stars, bool) or not isinstance(stars, int):
        return False, "Stars must be a whole number"
    if stars < 1 or stars > 5:
        return False, "Stars must be between 1 and 5"
    return True, None


def validate_text(value: str, field: str, max_length: int = 5000) -> Tuple[bool, Optional[str]]:
    """Validate required free text"""
    if not value:
        return False, f"{field} is required"
    if not isinstance(value, str):
        return False, f"{field} must be text"
    if not value.strip():
        return False, f"{field} is required"
    if len(value) > max_length:
        return False, f"{field} must be at most {max_length} characters"
    return True, None


def parse_deadline(value) -> Tuple[bool, Optional[datetime]]:
    """Parse an ISO-8601 deadline; empty means no deadline"""
    if value is None or value == '':
        return True, None
    if isinstance(value, datetime):
        return True, value
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return False, None
    # Stored as naive UTC like every other timestamp
    if parsed.tzinfo is not None:
        parsed = (parsed - parsed.utcoffset()).replace(tzinfo=None)
    return True, parsed


def parse_id(value, field: str) -> Tuple[bool, object]:
    """Parse a record id given as an int or a string of digits"""
    if isinstance(value, bool):
        return False, f"{field} must be a whole number"
    if isinstance(value, int):
        return True, value
    if isinstance(value, str) and value.strip().isdigit():
        return True, int(value)
    return False, f"{field} must be a whole number"
