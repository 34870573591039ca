from flask import Blueprint, render_template, flash, redirect, url_for, request
from flask_login import current_user
from schoollink.errors import ServiceError
from schoollink.services.post_service import PostService
from schoollink.services.roster_service import RosterService, PROFILE_FIELDS
from schoollink.services.storage_service import upload_student_avatar
from schoollink.utils.decorators import parent_required
from schoollink.routes.main import log_activity

bp = Blueprint('parent', __name__, url_prefix='/parent')


@bp.route('/children')
@parent_required
def children():
    return render_template('parent/children.html', children=RosterService.list_students(current_user))


@bp.route('/children/<int:student_id>', methods=['GET', 'POST'])
@parent_required
def child_detail(student_id):
    if request.method == 'POST':
        fields = {key: request.form.get(key) for key in PROFILE_FIELDS if key in request.form}
        try:
            student = RosterService.update_student(current_user, student_id, **fields)
            log_activity(current_user.id, 'update_student', f'Updated profile of {student.display_name}', request.remote_addr)
            flash(f"{student.display_name}'s profile updated!", 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return redirect(url_for('parent.child_detail', student_id=student_id))

    try:
        detail = RosterService.get_student_detail(current_user, student_id)
    except ServiceError as e:
        flash(e.message, 'danger')
        return redirect(url_for('parent.children'))
    return render_template('parent/child_detail.html', entries=PostService.student_posts(current_user, student_id),
                           **detail)


@bp.route('/children/<int:student_id>/avatar', methods=['POST'])
@parent_required
def child_avatar(student_id):
    try:
        student = RosterService.get_student(current_user, student_id)
        upload_student_avatar(student, request.files.get('avatar'))
        flash('Photo updated!', 'success')
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(url_for('parent.child_detail', student_id=student_id))


@bp.route('/classes')
@parent_required
def classes():
    return render_template('parent/classes.html', classes=RosterService.list_classes(current_user))


@bp.route('/classes/<int:class_id>')
@parent_required
def class_detail(class_id):
    try:
        klass = RosterService.get_class(current_user, class_id)
    except ServiceError as e:
        flash(e.message, 'danger')
        return redirect(url_for('parent.classes'))
    my_children = [child for child in current_user.children if child.class_id == klass.id]
    return render_template('parent/class_detail.html', school_class=klass, children=my_children,
                           entries=PostService.parent_feed(current_user, class_id=klass.id))


@bp.route('/posts')
@parent_required
def posts():
    class_id = request.args.get('class_id', type=int)
    return render_template('parent/posts.html', entries=PostService.parent_feed(current_user, class_id=class_id),
                           classes=RosterService.list_classes(current_user), class_id=class_id)


@bp.route('/posts/<int:post_id>/react', methods=['POST'])
@parent_required
def react(post_id):
    reaction_type = request.form.get('reaction_type')
    try:
        active, _ = PostService.toggle_reaction(current_user, post_id, reaction_type)
        log_activity(current_user.id, 'reaction', f'{"Added" if active else "Removed"} {reaction_type} on post {post_id}', request.remote_addr)
    except ServiceError as e:
        flash(e.message, 'danger')
    return redirect(request.referrer or url_for('parent.posts'))


@bp.route('/messages')
@parent_required
def messages():
    return render_template('parent/messages.html')
