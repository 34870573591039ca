import pytest

from schoollink import db
from schoollink.errors import DuplicateParentError, NotFoundError, PermissionDenied, ValidationError
from schoollink.models.post import Post, PostReaction
from schoollink.models.school_class import SchoolClass
from schoollink.models.student import Student
from schoollink.models.user import User
from schoollink.services.post_service import PostService
from schoollink.services.roster_service import RosterService

from conftest import PASSWORD

pytestmark = pytest.mark.usefixtures('request_ctx')


def test_teacher_lists_only_own_classes_and_students(teacher, school):
    classes = RosterService.list_classes(teacher)
    students = RosterService.list_students(teacher)

    assert [c.name for c in classes] == ['Grade 3A']
    assert [s.name for s in students] == ['Jane Doe']


def test_parent_lists_only_linked_children(parent, school):
    assert [s.name for s in RosterService.list_students(parent)] == ['Jane Doe']
    assert [c.name for c in RosterService.list_classes(parent)] == ['Grade 3A']


def test_admin_lists_everything(admin, school):
    assert len(RosterService.list_classes(admin)) == 2
    assert len(RosterService.list_students(admin)) == 2


def test_teacher_parent_listing_is_scoped_to_their_students(teacher, parent, school):
    assert RosterService.list_parents(teacher) == [parent]


def test_student_search_and_class_filter(admin, school):
    assert [s.name for s in RosterService.list_students(admin, search='jane')] == ['Jane Doe']
    assert [s.name for s in RosterService.list_students(admin, class_id=school['grade_4b'].id)] == ['Omar Other']


def test_teacher_cannot_open_another_teachers_class(teacher, school):
    with pytest.raises(PermissionDenied):
        RosterService.get_class(teacher, school['grade_4b'].id)


def test_create_student_without_parent_is_rejected_before_any_write(teacher, school):
    before = Student.query.count()

    with pytest.raises(ValidationError) as excinfo:
        RosterService.create_student(teacher, 'Sam Smith', school['grade_3a'].id, None)

    assert excinfo.value.message == 'Please select a parent for the student'
    assert Student.query.count() == before


def test_teacher_must_pick_one_of_their_classes(teacher, parent, school):
    with pytest.raises(ValidationError):
        RosterService.create_student(teacher, 'Sam Smith', None, parent.id)
    with pytest.raises(ValidationError):
        RosterService.create_student(teacher, 'Sam Smith', school['grade_4b'].id, parent.id)


def test_create_student_links_parent_and_notifies(teacher, parent, school):
    student = RosterService.create_student(teacher, None, school['grade_3a'].id, parent.id,
                                           first_name='Sam', middle_name='', last_name='Smith', suffix='Jr.')

    assert student.name == 'Sam Smith Jr.'
    assert student.parents == [parent]
    assert any(n.notification_type == 'student_added' for n in parent.notifications)


def test_create_student_with_new_parent_commits_both(teacher, school):
    student, new_parent = RosterService.create_student_with_new_parent(
        teacher, 'Mia Lopez', school['grade_3a'].id, 'Maria Lopez', 'Maria.Lopez@Example.com', PASSWORD)

    assert new_parent.email == 'maria.lopez@example.com'
    assert new_parent.role == 'parent'
    assert new_parent.check_password(PASSWORD)
    assert student.parents == [new_parent]


def test_create_student_with_existing_parent_email_reports_duplicate(teacher, parent, school):
    before = Student.query.count()

    with pytest.raises(DuplicateParentError) as excinfo:
        RosterService.create_student_with_new_parent(
            teacher, 'Mia Lopez', school['grade_3a'].id, 'Someone', parent.email, PASSWORD)

    assert excinfo.value.parent == parent
    assert excinfo.value.status_code == 409
    assert Student.query.count() == before


def test_deleting_a_class_unassigns_its_students(teacher, school):
    jane_id = school['jane'].id
    name, unassigned = RosterService.delete_class(teacher, school['grade_3a'].id)

    assert name == 'Grade 3A'
    assert unassigned == 1
    jane = db.session.get(Student, jane_id)
    assert jane.class_id is None
    assert jane.class_name == 'Not assigned'
    assert SchoolClass.query.filter_by(name='Grade 3A').first() is None


def test_deleting_a_class_removes_its_announcements(teacher, school):
    PostService.create_class_announcement(teacher, school['grade_3a'].id, 'Field trip on Friday')

    RosterService.delete_class(teacher, school['grade_3a'].id)

    assert Post.query.count() == 0


def test_unlinking_the_last_parent_is_rejected(teacher, parent, other_parent, school):
    jane = school['jane']
    with pytest.raises(ValidationError):
        RosterService.unlink_parent(teacher, jane.id, parent.id)

    RosterService.link_parent(teacher, jane.id, other_parent.id)
    RosterService.unlink_parent(teacher, jane.id, parent.id)

    assert jane.parents == [other_parent]


def test_parent_edits_profile_fields_only(parent, school):
    jane = school['jane']
    RosterService.update_student(parent, jane.id, bio='Loves reading', age='8', class_id=None, name='Hacked')

    assert jane.bio == 'Loves reading'
    assert jane.age == 8
    assert jane.name == 'Jane Doe'
    assert jane.class_id == school['grade_3a'].id


def test_parent_cannot_edit_someone_elses_child(parent, school):
    with pytest.raises(PermissionDenied):
        RosterService.update_student(parent, school['omar'].id, bio='Nope')


def test_age_must_be_a_non_negative_whole_number(teacher, school):
    with pytest.raises(ValidationError):
        RosterService.update_student(teacher, school['jane'].id, age='-1')
    with pytest.raises(ValidationError):
        RosterService.update_student(teacher, school['jane'].id, age='eight')

    student = RosterService.update_student(teacher, school['jane'].id, age='40')

    assert student.age == 40


def test_deleting_a_student_removes_posts_left_without_tags(teacher, school):
    jane = school['jane']
    post = PostService.create_student_post(teacher, [jane.id], 'Great reading today')
    post_id = post.id

    assert RosterService.delete_student(teacher, jane.id) == 'Jane Doe'

    assert db.session.get(Post, post_id) is None


def test_get_student_raises_not_found(admin):
    with pytest.raises(NotFoundError):
        RosterService.get_student(admin, 999)


def test_delete_parent_removes_account_links_and_reactions(admin, teacher, parent, school):
    post = PostService.create_student_post(teacher, [school['jane'].id], 'Lovely painting')
    PostService.toggle_reaction(parent, post.id, 'heart')

    RosterService.delete_parent(admin, parent.id)

    assert PostReaction.query.count() == 0
    assert PostService.reaction_counts([post.id])[post.id]['heart'] == 0
    assert User.query.filter_by(email='parent@example.com').first() is None
    assert school['jane'].parents == []


def test_dashboard_stats_per_role(admin, teacher, parent, school):
    assert RosterService.dashboard_stats(admin)['students'] == 2
    assert RosterService.dashboard_stats(teacher) == {'classes': 1, 'students': 1, 'parents': 1, 'posts': 0}
    assert RosterService.dashboard_stats(parent)['children'] == 1
