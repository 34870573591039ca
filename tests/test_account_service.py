import pytest

from schoollink import db
from schoollink.errors import PermissionDenied, ValidationError
from schoollink.models.post import Post
from schoollink.models.school_class import SchoolClass
from schoollink.models.student import Student
from schoollink.models.user import User
from schoollink.services.account_service import AccountService
from schoollink.services.post_service import PostService

from conftest import PASSWORD

pytestmark = pytest.mark.usefixtures('request_ctx')


def test_admin_creates_teacher_with_name_parts(admin):
    teacher = AccountService.create_teacher(admin, None, 'New.Teacher@Example.com', PASSWORD,
                                            first_name='Nora', last_name='Nguyen')

    assert teacher.email == 'new.teacher@example.com'
    assert teacher.name == 'Nora Nguyen'
    assert teacher.role == 'teacher'
    assert teacher.password_hash != PASSWORD


def test_only_admin_creates_teachers(teacher):
    with pytest.raises(PermissionDenied):
        AccountService.create_teacher(teacher, 'X', 'x@example.com', PASSWORD)


def test_parents_cannot_create_parent_accounts(parent):
    with pytest.raises(PermissionDenied):
        AccountService.create_parent_account(parent, 'X', 'x@example.com', PASSWORD)


def test_duplicate_non_parent_email_is_a_validation_error(admin, teacher):
    with pytest.raises(ValidationError):
        AccountService.create_parent_account(admin, 'X', teacher.email, PASSWORD)


def test_invalid_email_is_rejected(admin):
    with pytest.raises(ValidationError):
        AccountService.create_parent_account(admin, 'X', 'not-an-email', PASSWORD)


def test_admin_reset_issues_temporary_password(admin, parent):
    user, temp_password = AccountService.admin_reset_password(admin, parent.id)

    assert user == parent
    assert temp_password not in (user.password_hash or '')
    assert user.check_password(temp_password)
    assert any(n.notification_type == 'password_reset' for n in parent.notifications)


def test_change_password_requires_current_password(teacher):
    with pytest.raises(ValidationError):
        AccountService.change_password(teacher, 'WrongPass99', 'Brandnew77')

    AccountService.change_password(teacher, PASSWORD, 'Brandnew77')

    assert teacher.check_password('Brandnew77')
    assert [n.notification_type for n in teacher.notifications] == ['password_changed']


def test_update_profile_rebuilds_name_from_parts(parent):
    AccountService.update_profile(parent, first_name='Paula', middle_name='Q', last_name='Parker',
                                  phone=' 555-0100 ', email='ignored@example.com')

    assert parent.name == 'Paula Q Parker'
    assert parent.phone == '555-0100'
    assert parent.email == 'parent@example.com'


def test_deleting_teacher_removes_classes_and_posts_but_keeps_students(admin, teacher, school):
    jane_id = school['jane'].id
    PostService.create_student_post(teacher, [jane_id], 'Hello families')

    assert AccountService.delete_teacher(admin, teacher.id) == 'Tom Teacher'

    db.session.expire_all()
    assert User.query.filter_by(email='teacher@example.com').first() is None
    assert SchoolClass.query.filter_by(name='Grade 3A').first() is None
    assert Post.query.count() == 0
    assert db.session.get(Student, jane_id).class_id is None
