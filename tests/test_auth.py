from schoollink import db
from schoollink.models.user import User
from schoollink.models.user_activity import UserActivity

from conftest import PASSWORD, login, logout


def test_login_redirects_to_dashboard_and_logs_activity(client, teacher):
    response = login(client, teacher.email)

    assert response.status_code == 302
    assert response.headers['Location'].endswith('/dashboard')
    assert UserActivity.query.filter_by(user_id=teacher.id, activity_type='login').count() == 1


def test_login_is_case_insensitive_on_email(client, teacher):
    assert login(client, 'Teacher@Example.com').status_code == 302


def test_wrong_password_shows_attempts_remaining(client, teacher):
    response = login(client, teacher.email, 'WrongPass99')

    assert response.status_code == 200
    assert b'2 attempts remaining' in response.data


def test_three_failures_lock_the_account(client, teacher):
    for _ in range(3):
        login(client, teacher.email, 'WrongPass99')

    response = login(client, teacher.email)

    assert response.status_code == 200
    assert b'Account is locked' in response.data
    db.session.expire_all()
    assert db.session.get(User, teacher.id).is_account_locked()


def test_anonymous_user_is_sent_to_login(client):
    response = client.get('/teacher/classes')

    assert response.status_code == 302
    assert '/auth/login' in response.headers['Location']


def test_wrong_role_gets_forbidden_page(client, parent):
    login(client, parent.email)

    response = client.get('/admin/teachers')

    assert response.status_code == 403


def test_logout(client, teacher):
    login(client, teacher.email)
    logout(client)

    assert client.get('/dashboard').status_code == 302


def test_teacher_can_register(client):
    response = client.post('/auth/register', data={
        'name': 'Rita Register', 'email': 'rita@example.com',
        'password': PASSWORD, 'confirm_password': PASSWORD})

    assert response.status_code == 302
    assert User.query.filter_by(email='rita@example.com').one().role == 'teacher'


def test_register_rejects_weak_password(client):
    response = client.post('/auth/register', data={
        'name': 'Rita Register', 'email': 'rita@example.com',
        'password': 'short', 'confirm_password': 'short'})

    assert response.status_code == 200
    assert User.query.filter_by(email='rita@example.com').first() is None


def test_sidebar_matches_role(client, parent):
    login(client, parent.email)

    html = client.get('/dashboard').get_data(as_text=True)

    for label in ('Dashboard', 'My Children', 'Classes', 'Teacher Posts', 'Messages', 'Profile'):
        assert label in html
    assert 'Reset Requests' not in html
