from schoollink.models.post import Post
from schoollink.services.policy import (
    can_delete_post, can_edit_post, can_manage_class, can_manage_parent, can_manage_student,
    can_react, can_view_class, can_view_post, can_view_reactors, can_view_student,
)


def test_class_rules(admin, teacher, other_teacher, parent, school):
    grade_3a = school['grade_3a']

    assert can_manage_class(admin, grade_3a)
    assert can_manage_class(teacher, grade_3a)
    assert not can_manage_class(other_teacher, grade_3a)
    assert can_view_class(parent, grade_3a)
    assert not can_view_class(parent, school['grade_4b'])


def test_student_rules(teacher, parent, other_parent, school):
    jane = school['jane']

    assert can_manage_student(teacher, jane)
    assert not can_manage_student(teacher, school['omar'])
    assert not can_manage_student(parent, jane)
    assert can_view_student(parent, jane)
    assert not can_view_student(other_parent, jane)


def test_parent_rules(admin, teacher, other_teacher, parent):
    assert can_manage_parent(admin, parent)
    assert not can_manage_parent(teacher, parent)


def test_parent_rules_follow_linked_students(teacher, other_teacher, parent, school):
    assert can_manage_parent(teacher, parent)
    assert not can_manage_parent(other_teacher, parent)


def test_post_rules(admin, teacher, other_teacher, parent, other_parent, school):
    post = Post(teacher=teacher, content='Hi')
    post.tagged_students.append(school['jane'])

    assert can_edit_post(teacher, post)
    assert not can_edit_post(admin, post)
    assert can_delete_post(admin, post)
    assert not can_delete_post(other_teacher, post)
    assert can_view_post(parent, post)
    assert not can_view_post(other_parent, post)
    assert can_react(parent, post)
    assert not can_react(teacher, post)
    assert can_view_reactors(teacher, post)
    assert not can_view_reactors(parent, post)


def test_announcement_visible_to_class_families(teacher, parent, other_parent, school):
    post = Post(teacher=teacher, content='Hi', class_id=school['grade_3a'].id)

    assert can_view_post(parent, post)
    assert not can_view_post(other_parent, post)
