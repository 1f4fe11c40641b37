import pytest
from educhain.utils.validators import (
    normalize_wallet_address, parse_id, validate_text, validate_username
)


class TestValidators:
    """Test boundary validators"""

    @pytest.mark.parametrize('address, message', [
        (None, 'Wallet address is required'),
        (123, 'Wallet address must be text'),
        (['0x' + '1' * 40], 'Wallet address must be text'),
        ('0x123', 'Invalid wallet address'),
    ])
    def test_invalid_wallet_address(self, address, message):
        assert normalize_wallet_address(address) == (False, message)

    def test_wallet_address_lowercased(self):
        assert normalize_wallet_address(' 0x' + 'AB' * 20 + ' ') == (True, '0x' + 'ab' * 20)

    @pytest.mark.parametrize('username', [12345, {'name': 'ada'}, True])
    def test_username_must_be_text(self, username):
        assert validate_username(username) == (False, 'Username must be text')

    @pytest.mark.parametrize('value, message', [
        ('', 'Answer is required'),
        ('   ', 'Answer is required'),
        (42, 'Answer must be text'),
        (['text'], 'Answer must be text'),
    ])
    def test_invalid_text(self, value, message):
        assert validate_text(value, 'Answer') == (False, message)

    @pytest.mark.parametrize('value, expected', [(7, 7), ('7', 7), (' 12 ', 12)])
    def test_parse_id(self, value, expected):
        assert parse_id(value, 'target_id') == (True, expected)

    @pytest.mark.parametrize('value', [None, True, 'abc', '-1', 1.0, ['1']])
    def test_parse_invalid_id(self, value):
        assert parse_id(value, 'target_id') == (False, 'target_id must be a whole number')
