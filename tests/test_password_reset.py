import pytest

from schoollink.models.password_reset import PasswordResetRequest
from schoollink.services.password_reset_service import PasswordResetService

pytestmark = pytest.mark.usefixtures('request_ctx')


def test_request_notifies_admins_and_blocks_duplicates(admin, parent):
    reset_request, _ = PasswordResetService.create_reset_request(parent.id, 'Forgot it')

    assert reset_request.status == 'pending'
    assert [n.title for n in admin.notifications] == ['Password Reset Request']

    duplicate, message = PasswordResetService.create_reset_request(parent.id)
    assert duplicate is None
    assert 'already have a pending' in message


def test_approving_issues_a_working_temporary_password(admin, parent):
    reset_request, _ = PasswordResetService.create_reset_request(parent.id)

    success, _, temp_password = PasswordResetService.approve_request(reset_request.id, admin)

    assert success
    assert parent.check_password(temp_password)
    assert reset_request.status == 'completed'
    assert PasswordResetService.get_requests(admin) == []


def test_rejecting_keeps_the_old_password(admin, parent):
    reset_request, _ = PasswordResetService.create_reset_request(parent.id)

    success, _ = PasswordResetService.reject_request(reset_request.id, admin, 'Call the office')

    assert success
    assert reset_request.status == 'rejected'
    assert reset_request.admin_notes == 'Call the office'
    assert parent.check_password('Sunflower42')


def test_forgot_password_form_creates_request(client, parent):
    client.post('/auth/forgot-password', data={'email': parent.email})

    assert PasswordResetRequest.query.filter_by(user_id=parent.id).count() == 1


def test_forgot_password_does_not_reveal_unknown_emails(client):
    response = client.post('/auth/forgot-password', data={'email': 'nobody@example.com'})

    assert b'If an account with that email exists' in response.data
