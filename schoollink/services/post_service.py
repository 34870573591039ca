from collections import defaultdict

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from schoollink import db
from schoollink.errors import NotFoundError, ValidationError
from schoollink.models.post import Post, PostReaction, REACTION_TYPES, post_student_tags
from schoollink.models.school_class import SchoolClass
from schoollink.models.student import Student, student_parent
from schoollink.models.user import User
from schoollink.services import commit_or_rollback
from schoollink.services.notification_service import NotificationService
from schoollink.services.policy import (
    can_delete_post, can_edit_post, can_manage_class, can_manage_student, can_react,
    can_view_reactors, can_view_student, ensure,
)
from schoollink.services.storage_service import CLASS_ANNOUNCEMENTS, STUDENT_POSTS, save_attachment


def empty_counts():
    return {reaction_type: 0 for reaction_type in REACTION_TYPES}


def _clean_content(content):
    content = (content or '').strip()
    if not content:
        raise ValidationError('Please enter post content')
    return content


class PostService:
    """Student posts, class announcements and parent reactions"""

    @staticmethod
    def get_post(post_id) -> Post:
        post = db.session.get(Post, post_id)
        if not post:
            raise NotFoundError('Post not found')
        return post

    @staticmethod
    def _attach(post, attachment, prefix):
        if attachment is not None and attachment.filename:
            post.image_url, post.file_url, post.file_name = save_attachment(attachment, prefix)

    @staticmethod
    def create_student_post(teacher, student_ids, content, attachment=None) -> Post:
        """A post about one or more students; never carries a class id"""
        ensure(teacher.is_teacher, 'Only teachers can create posts')
        content = _clean_content(content)
        try:
            ids = {int(sid) for sid in (student_ids or []) if str(sid).strip()}
        except ValueError:
            raise ValidationError('Invalid student selected')
        if not ids:
            raise ValidationError('Please tag at least one student')
        students = Student.query.filter(Student.id.in_(ids)).all()
        if len(students) != len(ids):
            raise NotFoundError('Student not found')
        for student in students:
            ensure(can_manage_student(teacher, student), 'You can only post about students in your own classes')

        post = Post(teacher_id=teacher.id, content=content, class_id=None)
        PostService._attach(post, attachment, STUDENT_POSTS)
        post.tagged_students.extend(students)
        db.session.add(post)
        commit_or_rollback('creating post')
        NotificationService.notify_post_created(post)
        return post

    @staticmethod
    def create_class_announcement(teacher, class_id, content, attachment=None) -> Post:
        """A post addressed to every family in a class; never carries student tags"""
        ensure(teacher.is_teacher, 'Only teachers can create announcements')
        content = _clean_content(content)
        klass = db.session.get(SchoolClass, class_id)
        if not klass:
            raise NotFoundError('Class not found')
        ensure(can_manage_class(teacher, klass), 'You can only post to your own classes')

        post = Post(teacher_id=teacher.id, content=content, class_id=klass.id)
        PostService._attach(post, attachment, CLASS_ANNOUNCEMENTS)
        db.session.add(post)
        commit_or_rollback('creating announcement')
        NotificationService.notify_post_created(post)
        return post

    @staticmethod
    def update_post(user, post_id, content) -> Post:
        post = PostService.get_post(post_id)
        ensure(can_edit_post(user, post), 'You can only edit your own posts')
        post.content = _clean_content(content)
        commit_or_rollback('updating post')
        return post

    @staticmethod
    def delete_post(user, post_id):
        post = PostService.get_post(post_id)
        ensure(can_delete_post(user, post), 'You can only delete your own posts')
        db.session.delete(post)
        commit_or_rollback('deleting post')

    # Reactions

    @staticmethod
    def reaction_counts(post_ids):
        """{post_id: {reaction_type: count}} for the given posts, zero-filled"""
        post_ids = list(post_ids)
        counts = {post_id: empty_counts() for post_id in post_ids}
        if not post_ids:
            return counts
        rows = db.session.query(PostReaction.post_id, PostReaction.reaction_type, db.func.count(PostReaction.id))\
            .filter(PostReaction.post_id.in_(post_ids))\
            .group_by(PostReaction.post_id, PostReaction.reaction_type)\
            .all()
        for post_id, reaction_type, count in rows:
            if reaction_type in counts[post_id]:
                counts[post_id][reaction_type] = count
        return counts

    @staticmethod
    def _own_reactions(parent, post_ids):
        mine = defaultdict(set)
        if not post_ids:
            return mine
        rows = db.session.query(PostReaction.post_id, PostReaction.reaction_type)\
            .filter(PostReaction.parent_id == parent.id, PostReaction.post_id.in_(post_ids)).all()
        for post_id, reaction_type in rows:
            mine[post_id].add(reaction_type)
        return mine

    @staticmethod
    def _find_reaction(post_id, parent_id, reaction_type):
        return PostReaction.query.filter_by(post_id=post_id, parent_id=parent_id,
                                            reaction_type=reaction_type).first()

    @staticmethod
    def toggle_reaction(parent, post_id, reaction_type):
        """Add the reaction when absent, remove it when present.

        Keyed by (post, parent, type); a concurrent insert of the same key is
        treated as already present. Returns (active, counts).
        """
        if reaction_type not in REACTION_TYPES:
            raise ValidationError('Unknown reaction type')
        post = PostService.get_post(post_id)
        ensure(can_react(parent, post), 'You can only react to posts about your children')

        existing = PostService._find_reaction(post.id, parent.id, reaction_type)
        if existing:
            db.session.delete(existing)
            commit_or_rollback('removing reaction')
            active = False
        else:
            db.session.add(PostReaction(post=post, parent_id=parent.id, reaction_type=reaction_type))
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                current_app.logger.info(f"Duplicate {reaction_type} reaction on post {post_id} ignored")
            else:
                NotificationService.notify_reaction(post, parent, reaction_type)
            active = True
        return active, PostService.reaction_counts([post.id])[post.id]

    @staticmethod
    def list_reactors(user, post_id, reaction_type):
        if reaction_type not in REACTION_TYPES:
            raise ValidationError('Unknown reaction type')
        post = PostService.get_post(post_id)
        ensure(can_view_reactors(user, post), 'You can only view reactions on your own posts')
        return User.query.join(PostReaction, PostReaction.parent_id == User.id)\
            .filter(PostReaction.post_id == post.id, PostReaction.reaction_type == reaction_type)\
            .order_by(PostReaction.created_at).all()

    # Feeds

    @staticmethod
    def _entries(posts, parent=None):
        counts = PostService.reaction_counts(p.id for p in posts)
        mine = PostService._own_reactions(parent, [p.id for p in posts]) if parent else {}
        child_ids = {child.id for child in parent.children} if parent else None
        entries = []
        for post in posts:
            students = post.tagged_students
            if child_ids is not None:
                students = [s for s in students if s.id in child_ids]
            entries.append({
                'post': post,
                'teacher': post.teacher,
                'students': students,
                'school_class': post.school_class,
                'reactions': counts[post.id],
                'my_reactions': mine.get(post.id, set()),
            })
        return entries

    @staticmethod
    def parent_feed(parent, class_id=None):
        """Posts about the parent's children and announcements for their classes, newest first"""
        ensure(parent.is_parent)
        child_ids = db.session.query(student_parent.c.student_id)\
            .filter(student_parent.c.parent_id == parent.id)
        class_ids = db.session.query(Student.class_id)\
            .filter(Student.id.in_(child_ids), Student.class_id.isnot(None))
        tagged_post_ids = db.session.query(post_student_tags.c.post_id)\
            .filter(post_student_tags.c.student_id.in_(child_ids))

        query = Post.query.filter(or_(Post.id.in_(tagged_post_ids), Post.class_id.in_(class_ids)))
        if class_id is not None:
            class_child_ids = db.session.query(Student.id)\
                .filter(Student.id.in_(child_ids), Student.class_id == class_id)
            class_post_ids = db.session.query(post_student_tags.c.post_id)\
                .filter(post_student_tags.c.student_id.in_(class_child_ids))
            query = query.filter(or_(Post.class_id == class_id, Post.id.in_(class_post_ids)))
        posts = query.order_by(Post.created_at.desc(), Post.id.desc()).all()
        return PostService._entries(posts, parent=parent)

    @staticmethod
    def class_posts(user, class_id):
        klass = db.session.get(SchoolClass, class_id)
        if not klass:
            raise NotFoundError('Class not found')
        ensure(can_manage_class(user, klass), 'You can only view posts for your own classes')
        posts = Post.query.filter_by(class_id=klass.id)\
            .order_by(Post.created_at.desc(), Post.id.desc()).all()
        return klass, PostService._entries(posts)

    @staticmethod
    def teacher_posts(teacher):
        """Every post the teacher authored"""
        ensure(teacher.is_teacher)
        posts = Post.query.filter_by(teacher_id=teacher.id)\
            .order_by(Post.created_at.desc(), Post.id.desc()).all()
        return PostService._entries(posts)

    @staticmethod
    def student_posts(user, student_id):
        student = db.session.get(Student, student_id)
        if not student:
            raise NotFoundError('Student not found')
        ensure(can_view_student(user, student), 'You can only view your own students')
        posts = Post.query.filter(Post.tagged_students.any(Student.id == student.id))\
            .order_by(Post.created_at.desc(), Post.id.desc()).all()
        return PostService._entries(posts, parent=user if user.is_parent else None)
