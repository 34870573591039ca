from flask import Blueprint, render_template, flash, redirect, url_for, request
from flask_login import current_user
from schoollink.errors import ServiceError
from schoollink.models.post import REACTION_EMOJI
from schoollink.services.post_service import PostService
from schoollink.services.roster_service import RosterService
from schoollink.utils.decorators import teacher_required
from schoollink.routes.main import log_activity
from schoollink.routes.roster import register_roster_routes

bp = Blueprint('teacher', __name__, url_prefix='/teacher')

register_roster_routes(bp, teacher_required)


@bp.route('/classes/<int:class_id>/posts', methods=['GET', 'POST'])
@teacher_required
def class_posts(class_id):
    if request.method == 'POST':
        try:
            PostService.create_class_announcement(current_user, class_id, request.form.get('content'),
                                                  request.files.get('attachment'))
            log_activity(current_user.id, 'create_announcement', f'Posted announcement to class {class_id}', request.remote_addr)
            flash('Announcement posted!', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return redirect(url_for('teacher.class_posts', class_id=class_id))

    try:
        klass, entries = PostService.class_posts(current_user, class_id)
    except ServiceError as e:
        flash(e.message, 'danger')
        return redirect(url_for('teacher.classes'))
    return render_template('teacher/class_posts.html', school_class=klass, entries=entries,
                           students=RosterService.list_students(current_user, class_id=klass.id))


@bp.route('/students/<int:student_id>/posts', methods=['POST'])
@teacher_required
def create_student_post(student_id):
    student_ids = request.form.getlist('student_ids') or [student_id]
    try:
        post = PostService.create_student_post(current_user, student_ids, request.form.get('content'),
                                               request.files.get('attachment'))
        log_activity(current_user.id, 'create_post', f'Posted about {len(post.tagged_students)} student(s)', request.remote_addr)
        flash('Post shared with parents!', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('teacher.student_detail', student_id=student_id))


@bp.route('/announcements')
@teacher_required
def announcements():
    return render_template('teacher/announcements.html',
                           entries=PostService.teacher_posts(current_user),
                           classes=RosterService.list_classes(current_user))


@bp.route('/posts/<int:post_id>/edit', methods=['POST'])
@teacher_required
def edit_post(post_id):
    try:
        PostService.update_post(current_user, post_id, request.form.get('content'))
        flash('Post updated.', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(request.referrer or url_for('teacher.announcements'))


@bp.route('/posts/<int:post_id>/reactions/<reaction_type>')
@teacher_required
def reactors(post_id, reaction_type):
    try:
        parents = PostService.list_reactors(current_user, post_id, reaction_type)
    except ServiceError as e:
        flash(e.message, 'danger')
        return redirect(url_for('teacher.announcements'))
    return render_template('teacher/reactors.html', parents=parents, post=PostService.get_post(post_id),
                           reaction_type=reaction_type, emoji=REACTION_EMOJI[reaction_type])
