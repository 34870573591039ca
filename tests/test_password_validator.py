import pytest

from schoollink.services.account_service import AccountService
from schoollink.utils.password_validator import PasswordValidator

validator = PasswordValidator()


@pytest.mark.parametrize('password', ['Sunflower42', 'Maple7Leaf', 'river8stone'])
def test_accepts_reasonable_passwords(password):
    assert validator.validate_password(password) == (True, [])


@pytest.mark.parametrize('password, issue', [
    ('Ab1', 'at least 8 characters'),
    ('Summer111x', 'repeated numbers'),
    ('xx0123456789a', 'common sequence'),
    ('Password1', 'too common'),
    ('OnlyLetters', 'at least one number'),
    ('12398745', 'at least one letter'),
])
def test_rejects_weak_passwords(password, issue):
    is_valid, issues = validator.validate_password(password)

    assert not is_valid
    assert any(issue in message for message in issues)


def test_generated_passwords_always_validate():
    for _ in range(20):
        password = AccountService.generate_password()
        assert len(password) == 8
        assert validator.validate_password(password)[0]
