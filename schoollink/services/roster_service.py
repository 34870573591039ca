"""Classes, students and parents as seen by each role.

Every listing is a single query scoped to what the acting user owns, and
every multi-row write is committed as one unit.
"""
from typing import Optional

from schoollink import db
from schoollink.errors import NotFoundError, ValidationError
from schoollink.models.post import Post
from schoollink.models.school_class import SchoolClass
from schoollink.models.student import Student, student_parent
from schoollink.models.user import User
from schoollink.services import commit_or_rollback
from schoollink.services.account_service import AccountService
from schoollink.services.notification_service import NotificationService
from schoollink.services.post_service import PostService
from schoollink.services.policy import (
    can_edit_student_profile, can_manage_class, can_manage_parent, can_manage_student,
    can_view_class, can_view_student, ensure,
)
from schoollink.utils.names import format_full_name

NAME_FIELDS = ('first_name', 'middle_name', 'last_name', 'suffix')
PROFILE_FIELDS = NAME_FIELDS + ('bio', 'grade', 'age')
STAFF_FIELDS = PROFILE_FIELDS + ('name', 'class_id')


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_age(value):
    value = _clean(value)
    if value is None:
        return None
    try:
        age = int(value)
    except ValueError:
        raise ValidationError('Age must be a whole number')
    if age < 0:
        raise ValidationError('Age cannot be negative')
    return age


def _parse_id(value, label):
    value = _clean(value)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f'Invalid {label}')


def _parent_link_query():
    return db.session.query(student_parent.c.parent_id)\
        .join(Student, Student.id == student_parent.c.student_id)


class RosterService:

    # Classes

    @staticmethod
    def list_classes(user):
        query = SchoolClass.query
        if user.is_teacher:
            query = query.filter(SchoolClass.teacher_id == user.id)
        elif user.is_parent:
            query = query.join(Student, Student.class_id == SchoolClass.id)\
                .join(student_parent, student_parent.c.student_id == Student.id)\
                .filter(student_parent.c.parent_id == user.id)\
                .distinct()
        elif not user.is_admin:
            return []
        return query.order_by(SchoolClass.name).all()

    @staticmethod
    def get_class(user, class_id, manage=False) -> SchoolClass:
        klass = db.session.get(SchoolClass, class_id)
        if not klass:
            raise NotFoundError('Class not found')
        if manage:
            ensure(can_manage_class(user, klass), 'You can only manage your own classes')
        else:
            ensure(can_view_class(user, klass), 'You do not have access to this class')
        return klass

    @staticmethod
    def _resolve_teacher_id(user, teacher_id):
        if user.is_teacher:
            return user.id
        ensure(user.is_admin, 'Only teachers and administrators can manage classes')
        teacher_id = _parse_id(teacher_id, 'teacher')
        if teacher_id is None:
            raise ValidationError('Please select a teacher for the class')
        teacher = db.session.get(User, teacher_id)
        if not teacher or not teacher.is_teacher:
            raise ValidationError('Please select a valid teacher')
        return teacher.id

    @staticmethod
    def create_class(user, name, teacher_id=None) -> SchoolClass:
        name = _clean(name)
        if not name:
            raise ValidationError('Class name is required')
        klass = SchoolClass(name=name, teacher_id=RosterService._resolve_teacher_id(user, teacher_id))
        db.session.add(klass)
        commit_or_rollback('creating class')
        return klass

    @staticmethod
    def update_class(user, class_id, name, teacher_id=None) -> SchoolClass:
        klass = RosterService.get_class(user, class_id, manage=True)
        name = _clean(name)
        if not name:
            raise ValidationError('Class name is required')
        klass.name = name
        if user.is_admin and teacher_id:
            klass.teacher_id = RosterService._resolve_teacher_id(user, teacher_id)
        commit_or_rollback('updating class')
        return klass

    @staticmethod
    def delete_class(user, class_id):
        """Delete a class and its announcements; returns (name, number of students unassigned)"""
        klass = RosterService.get_class(user, class_id, manage=True)
        name = klass.name
        unassigned = Student.query.filter_by(class_id=klass.id)\
            .update({Student.class_id: None}, synchronize_session='fetch')
        db.session.delete(klass)
        commit_or_rollback('deleting class')
        return name, unassigned

    # Students

    @staticmethod
    def list_students(user, search: Optional[str] = None, class_id=None):
        query = Student.query.outerjoin(SchoolClass, SchoolClass.id == Student.class_id)
        if user.is_teacher:
            query = query.filter(SchoolClass.teacher_id == user.id)
        elif user.is_parent:
            query = query.join(student_parent, student_parent.c.student_id == Student.id)\
                .filter(student_parent.c.parent_id == user.id)
        elif not user.is_admin:
            return []
        if class_id:
            query = query.filter(Student.class_id == class_id)
        if search and search.strip():
            query = query.filter(Student.name.ilike(f'%{search.strip()}%'))
        return query.order_by(Student.created_at.desc(), Student.id.desc()).all()

    @staticmethod
    def get_student(user, student_id, manage=False) -> Student:
        student = db.session.get(Student, student_id)
        if not student:
            raise NotFoundError('Student not found')
        if manage:
            ensure(can_manage_student(user, student), 'You can only manage students in your own classes')
        else:
            ensure(can_view_student(user, student), 'You can only view your own students')
        return student

    @staticmethod
    def _resolve_class_id(user, class_id, required):
        class_id = _parse_id(class_id, 'class')
        if class_id is None:
            if required:
                raise ValidationError('Please select a class for the student')
            return None
        klass = db.session.get(SchoolClass, class_id)
        if not klass or not can_manage_class(user, klass):
            raise ValidationError('Invalid class selected')
        return klass.id

    @staticmethod
    def _validate_new_student(user, name, class_id, parts):
        ensure(user.is_admin or user.is_teacher, 'Only teachers and administrators can add students')
        name = _clean(name)
        if _clean(parts.get('first_name')) and _clean(parts.get('last_name')):
            name = format_full_name(_clean(parts['first_name']), _clean(parts['last_name']),
                                    _clean(parts.get('middle_name')), _clean(parts.get('suffix')))
        if not name:
            raise ValidationError('Please enter a student name')
        return name, RosterService._resolve_class_id(user, class_id, required=user.is_teacher)

    @staticmethod
    def _apply_name_parts(student, parts):
        for key in NAME_FIELDS:
            if key in parts:
                setattr(student, key, _clean(parts[key]))
        if student.first_name and student.last_name:
            student.name = format_full_name(student.first_name, student.last_name,
                                            student.middle_name, student.suffix)

    @staticmethod
    def create_student(user, name, class_id, parent_id, **parts) -> Student:
        """Create a student linked to an existing parent.

        All validation happens before anything is written; the student and
        its parent link are committed together.
        """
        name, class_id = RosterService._validate_new_student(user, name, class_id, parts)
        parent_id = _parse_id(parent_id, 'parent')
        if parent_id is None:
            raise ValidationError('Please select a parent for the student')
        parent = db.session.get(User, parent_id)
        if not parent or not parent.is_parent:
            raise ValidationError('Please select a valid parent')

        student = Student(name=name, class_id=class_id)
        RosterService._apply_name_parts(student, parts)
        student.parents.append(parent)
        db.session.add(student)
        commit_or_rollback('creating student')
        NotificationService.notify_student_added(student.id, added_by_name=user.display_name)
        return student

    @staticmethod
    def create_student_with_new_parent(user, name, class_id, parent_name, parent_email,
                                       parent_password, **parts):
        """Create a parent account and a student for it in one transaction.

        Raises DuplicateParentError when the email belongs to an existing
        parent so the caller can offer to reuse that account.
        """
        name, class_id = RosterService._validate_new_student(user, name, class_id, parts)
        try:
            parent = AccountService.create_parent_account(user, parent_name, parent_email,
                                                          parent_password, commit=False)
            student = Student(name=name, class_id=class_id)
            RosterService._apply_name_parts(student, parts)
            student.parents.append(parent)
            db.session.add(student)
        except Exception:
            db.session.rollback()
            raise
        commit_or_rollback('creating student and parent')
        AccountService.announce_parent_account(user, parent)
        NotificationService.notify_student_added(student.id, added_by_name=user.display_name)
        return student, parent

    @staticmethod
    def update_student(user, student_id, **fields) -> Student:
        student = db.session.get(Student, student_id)
        if not student:
            raise NotFoundError('Student not found')
        if can_manage_student(user, student):
            allowed = STAFF_FIELDS
        else:
            ensure(user.is_parent and can_edit_student_profile(user, student),
                   'You can only edit your own children')
            allowed = PROFILE_FIELDS

        changes = {key: value for key, value in fields.items() if key in allowed}
        if 'age' in changes:
            student.age = _parse_age(changes.pop('age'))
        if 'class_id' in changes:
            student.class_id = RosterService._resolve_class_id(user, changes.pop('class_id'),
                                                                required=user.is_teacher)
        if 'name' in changes:
            name = _clean(changes.pop('name'))
            if not name:
                raise ValidationError('Please enter a student name')
            student.name = name
        for key in ('bio', 'grade'):
            if key in changes:
                setattr(student, key, _clean(changes.pop(key)))
        RosterService._apply_name_parts(student, changes)
        commit_or_rollback('updating student')
        return student

    @staticmethod
    def delete_student(user, student_id):
        """Delete a student along with student posts that were only about them"""
        student = RosterService.get_student(user, student_id, manage=True)
        name = student.display_name
        posts = list(student.tagged_posts)
        db.session.delete(student)
        db.session.flush()
        for post in posts:
            db.session.expire(post, ['tagged_students'])
            if post.class_id is None and not post.tagged_students:
                db.session.delete(post)
        commit_or_rollback('deleting student')
        return name

    @staticmethod
    def link_parent(user, student_id, parent_id):
        student = RosterService.get_student(user, student_id, manage=True)
        parent = db.session.get(User, _parse_id(parent_id, 'parent') or 0)
        if not parent or not parent.is_parent:
            raise ValidationError('Please select a valid parent')
        if parent in student.parents:
            raise ValidationError(f'{parent.display_name} is already linked to {student.display_name}')
        student.parents.append(parent)
        commit_or_rollback('linking parent')
        return student

    @staticmethod
    def unlink_parent(user, student_id, parent_id):
        student = RosterService.get_student(user, student_id, manage=True)
        parent = next((p for p in student.parents if p.id == _parse_id(parent_id, 'parent')), None)
        if not parent:
            raise NotFoundError('Parent is not linked to this student')
        if len(student.parents) == 1:
            raise ValidationError('A student must keep at least one linked parent')
        student.parents.remove(parent)
        commit_or_rollback('unlinking parent')
        return student

    # Parents

    @staticmethod
    def list_parents(user):
        if user.is_admin:
            return User.query.filter_by(role='parent').order_by(User.name).all()
        ensure(user.is_teacher, 'Only teachers and administrators can list parents')
        parent_ids = _parent_link_query()\
            .join(SchoolClass, SchoolClass.id == Student.class_id)\
            .filter(SchoolClass.teacher_id == user.id)
        return User.query.filter(User.role == 'parent', User.id.in_(parent_ids))\
            .order_by(User.name).all()

    @staticmethod
    def selectable_parents(user):
        """Parents a teacher or admin may link a new student to"""
        ensure(user.is_admin or user.is_teacher)
        return User.query.filter_by(role='parent').order_by(User.name).all()

    @staticmethod
    def get_parent(user, parent_id) -> User:
        parent = db.session.get(User, parent_id)
        if not parent or not parent.is_parent:
            raise NotFoundError('Parent not found')
        ensure(can_manage_parent(user, parent), 'You can only manage parents of your students')
        return parent

    @staticmethod
    def delete_parent(user, parent_id):
        parent = RosterService.get_parent(user, parent_id)
        name = parent.display_name
        db.session.delete(parent)
        commit_or_rollback('deleting parent')
        return name

    # Aggregates

    @staticmethod
    def get_student_detail(user, student_id):
        student = RosterService.get_student(user, student_id)
        klass = student.school_class
        posts = Post.query.filter(Post.tagged_students.any(Student.id == student.id))\
            .order_by(Post.created_at.desc()).all()
        return {
            'student': student,
            'school_class': klass,
            'teacher': klass.teacher if klass else None,
            'parents': sorted(student.parents, key=lambda p: p.display_name),
            'posts': posts,
            'can_manage': can_manage_student(user, student),
        }

    @staticmethod
    def dashboard_stats(user):
        if user.is_admin:
            return {
                'teachers': User.query.filter_by(role='teacher').count(),
                'classes': SchoolClass.query.count(),
                'students': Student.query.count(),
                'parents': User.query.filter_by(role='parent').count(),
                'posts': Post.query.count(),
            }
        if user.is_teacher:
            return {
                'classes': SchoolClass.query.filter_by(teacher_id=user.id).count(),
                'students': Student.query.join(SchoolClass, SchoolClass.id == Student.class_id)
                                   .filter(SchoolClass.teacher_id == user.id).count(),
                'parents': len(RosterService.list_parents(user)),
                'posts': Post.query.filter_by(teacher_id=user.id).count(),
            }
        children = user.children
        return {
            'children': len(children),
            'classes': len({child.class_id for child in children if child.class_id}),
            'posts': len(PostService.parent_feed(user)),
        }

    @staticmethod
    def teacher_detail(user, teacher_id):
        teacher = AccountService.get_teacher(user, teacher_id)
        classes = SchoolClass.query.filter_by(teacher_id=teacher.id).order_by(SchoolClass.name).all()
        return {
            'teacher': teacher,
            'classes': [(klass, list(klass.students)) for klass in classes],
            'student_count': sum(len(klass.students) for klass in classes),
            'post_count': Post.query.filter_by(teacher_id=teacher.id).count(),
            'parent_count': len(RosterService.list_parents(teacher)),
        }
