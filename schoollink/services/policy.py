"""Authorization rules shared by every data-access path.

Each predicate takes the acting user explicitly. Admins may manage every
record; teachers own their classes and, transitively, the students in them,
the parents linked to those students and the posts they authored; parents see
their linked children and the posts addressed to them.
"""
from schoollink import db
from schoollink.errors import PermissionDenied
from schoollink.models.school_class import SchoolClass
from schoollink.models.student import Student, student_parent


def ensure(allowed, message='You do not have permission to perform this action'):
    if not allowed:
        raise PermissionDenied(message)


def _child_ids(parent):
    return {child.id for child in parent.children}


def can_manage_class(user, klass):
    if user.is_admin:
        return True
    return user.is_teacher and klass.teacher_id == user.id


def can_view_class(user, klass):
    if can_manage_class(user, klass):
        return True
    if user.is_parent:
        return any(child.class_id == klass.id for child in user.children)
    return False


def can_manage_student(user, student):
    if user.is_admin:
        return True
    if not user.is_teacher or student.class_id is None:
        return False
    return student.school_class is not None and student.school_class.teacher_id == user.id


def can_view_student(user, student):
    if can_manage_student(user, student):
        return True
    return user.is_parent and student.id in _child_ids(user)


def can_edit_student_profile(user, student):
    return can_view_student(user, student)


def can_manage_parent(user, parent):
    if user.is_admin:
        return True
    if not user.is_teacher:
        return False
    linked = db.session.query(student_parent.c.student_id)\
        .join(Student, Student.id == student_parent.c.student_id)\
        .join(SchoolClass, SchoolClass.id == Student.class_id)\
        .filter(student_parent.c.parent_id == parent.id, SchoolClass.teacher_id == user.id)\
        .first()
    return linked is not None


def can_edit_post(user, post):
    return user.is_teacher and post.teacher_id == user.id


def can_delete_post(user, post):
    return user.is_admin or can_edit_post(user, post)


def can_view_post(user, post):
    if can_delete_post(user, post):
        return True
    if not user.is_parent:
        return False
    children = user.children
    if post.class_id is not None:
        return any(child.class_id == post.class_id for child in children)
    child_ids = {child.id for child in children}
    return any(student.id in child_ids for student in post.tagged_students)


def can_react(user, post):
    return user.is_parent and can_view_post(user, post)


def can_view_reactors(user, post):
    return can_delete_post(user, post)
