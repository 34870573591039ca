import pytest

from schoollink.models.notification import Notification
from schoollink.services.notification_service import NotificationService
from schoollink.services.post_service import PostService

from conftest import login


@pytest.fixture
def announcement(request_ctx, teacher, school):
    return PostService.create_class_announcement(teacher, school['grade_3a'].id, 'Picture day is Monday')


def test_announcement_notifies_each_family_once(parent, other_parent, announcement):
    assert Notification.get_unread_count(parent.id) == 1
    assert Notification.get_unread_count(other_parent.id) == 0


def test_mark_all_as_read(parent, announcement):
    assert NotificationService.mark_all_as_read(parent.id) == 1
    assert Notification.get_unread_count(parent.id) == 0


def test_unread_count_api(client, parent, announcement):
    login(client, parent.email)

    assert client.get('/notifications/api/unread-count').get_json() == {'count': 1}


def test_mark_read_api_only_touches_own_notifications(client, other_parent, parent, announcement):
    notification = Notification.query.filter_by(recipient_id=parent.id).one()
    login(client, other_parent.email)

    response = client.post(f'/notifications/api/mark-read/{notification.id}')

    assert response.status_code == 404


def test_notifications_page_marks_everything_read(client, parent, announcement):
    login(client, parent.email)

    response = client.get('/notifications/')

    assert b'New announcement in Grade 3A' in response.data
    assert client.get('/notifications/api/unread-count').get_json() == {'count': 0}
