"""Class, student and parent management screens shared by the admin and teacher areas.

Both blueprints expose the same endpoint names so the templates can build
links with ``request.blueprint``. The service layer decides what each role
may see and change.
"""
from flask import render_template, flash, redirect, url_for, request
from flask_login import current_user
from schoollink.errors import DuplicateParentError, ServiceError
from schoollink.services.account_service import AccountService
from schoollink.services.post_service import PostService
from schoollink.services.roster_service import RosterService, NAME_FIELDS
from schoollink.services.storage_service import upload_student_avatar
from schoollink.routes.main import log_activity


def name_parts(form, prefix=''):
    return {key: form.get(prefix + key) for key in NAME_FIELDS if prefix + key in form}


def flash_new_credentials(parent, password):
    flash(f'Parent account created for {parent.email} with password: {password}. '
          'Share these credentials with the parent now; the password will not be shown again.', 'success')


def create_student_from_form(form):
    """Create a student from the add-student form, with an existing or a brand new parent"""
    if form.get('parent_mode') == 'new':
        password = (form.get('parent_password') or '').strip()
        generated = not password
        if generated:
            password = AccountService.generate_password()
        student, parent = RosterService.create_student_with_new_parent(
            current_user, form.get('name'), form.get('class_id'),
            form.get('parent_name'), form.get('parent_email'), password,
            **name_parts(form))
        log_activity(current_user.id, 'create_parent', f'Created parent account: {parent.email}', request.remote_addr)
        if generated:
            flash_new_credentials(parent, password)
        else:
            flash(f'Parent account created for {parent.email}.', 'success')
    else:
        student = RosterService.create_student(current_user, form.get('name'), form.get('class_id'),
                                               form.get('parent_id'), **name_parts(form))
    log_activity(current_user.id, 'create_student', f'Created student: {student.display_name}', request.remote_addr)
    return student


def register_roster_routes(bp, guard):
    """Attach the shared management routes to ``bp``, each wrapped in ``guard``"""

    def route(rule, **options):
        def decorator(f):
            return bp.route(rule, **options)(guard(f))
        return decorator

    def back(endpoint, **values):
        return redirect(url_for(f'{bp.name}.{endpoint}', **values))

    # Classes

    @route('/classes')
    def classes():
        classes = RosterService.list_classes(current_user)
        teachers = AccountService.list_teachers(current_user) if current_user.is_admin else []
        return render_template('roster/classes.html', classes=classes, teachers=teachers)

    @route('/classes/create', methods=['POST'])
    def create_class():
        try:
            klass = RosterService.create_class(current_user, request.form.get('name'), request.form.get('teacher_id'))
            log_activity(current_user.id, 'create_class', f'Created class: {klass.name}', request.remote_addr)
            flash(f'Class "{klass.name}" created successfully!', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('classes')

    @route('/classes/<int:class_id>/edit', methods=['POST'])
    def update_class(class_id):
        try:
            klass = RosterService.update_class(current_user, class_id, request.form.get('name'),
                                               request.form.get('teacher_id'))
            flash(f'Class "{klass.name}" updated successfully!', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('classes')

    @route('/classes/<int:class_id>/delete', methods=['POST'])
    def delete_class(class_id):
        try:
            name, unassigned = RosterService.delete_class(current_user, class_id)
            log_activity(current_user.id, 'delete_class', f'Deleted class: {name}', request.remote_addr)
            flash(f'Class "{name}" deleted. {unassigned} student(s) are now unassigned.', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('classes')

    # Students

    @route('/students')
    def students():
        class_id = request.args.get('class_id', type=int)
        search = request.args.get('search', '')
        return render_template('roster/students.html',
                               students=RosterService.list_students(current_user, search=search, class_id=class_id),
                               classes=RosterService.list_classes(current_user),
                               parents=RosterService.selectable_parents(current_user),
                               search=search, class_id=class_id)

    @route('/students/create', methods=['POST'])
    def create_student():
        try:
            student = create_student_from_form(request.form)
            flash(f'Student "{student.display_name}" added successfully!', 'success')
        except DuplicateParentError as e:
            flash(f'{e.message}. Choose "Existing parent" and select {e.parent.display_name} instead.', 'warning')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('students')

    @route('/students/<int:student_id>')
    def student_detail(student_id):
        try:
            detail = RosterService.get_student_detail(current_user, student_id)
        except ServiceError as e:
            flash(e.message, 'danger')
            return back('students')
        entries = PostService.student_posts(current_user, student_id)
        linkable = [p for p in RosterService.selectable_parents(current_user) if p not in detail['parents']]
        return render_template('roster/student_detail.html', entries=entries, linkable_parents=linkable,
                               classes=RosterService.list_classes(current_user), **detail)

    @route('/students/<int:student_id>/edit', methods=['POST'])
    def update_student(student_id):
        fields = {key: request.form.get(key) for key in ('name', 'class_id', 'bio', 'grade', 'age') + NAME_FIELDS
                  if key in request.form}
        try:
            student = RosterService.update_student(current_user, student_id, **fields)
            flash(f'Student "{student.display_name}" updated successfully!', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('student_detail', student_id=student_id)

    @route('/students/<int:student_id>/avatar', methods=['POST'])
    def student_avatar(student_id):
        try:
            student = RosterService.get_student(current_user, student_id, manage=True)
            upload_student_avatar(student, request.files.get('avatar'))
            flash('Student photo updated!', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('student_detail', student_id=student_id)

    @route('/students/<int:student_id>/delete', methods=['POST'])
    def delete_student(student_id):
        try:
            name = RosterService.delete_student(current_user, student_id)
            log_activity(current_user.id, 'delete_student', f'Deleted student: {name}', request.remote_addr)
            flash(f'Student "{name}" deleted successfully!', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('students')

    @route('/students/<int:student_id>/parents', methods=['POST'])
    def link_parent(student_id):
        try:
            student = RosterService.link_parent(current_user, student_id, request.form.get('parent_id'))
            flash(f'Parent linked to {student.display_name}.', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('student_detail', student_id=student_id)

    @route('/students/<int:student_id>/parents/<int:parent_id>/unlink', methods=['POST'])
    def unlink_parent(student_id, parent_id):
        try:
            student = RosterService.unlink_parent(current_user, student_id, parent_id)
            flash(f'Parent unlinked from {student.display_name}.', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('student_detail', student_id=student_id)

    # Parents

    @route('/parents')
    def parents():
        return render_template('roster/parents.html', parents=RosterService.list_parents(current_user))

    @route('/parents/create', methods=['POST'])
    def create_parent():
        password = (request.form.get('password') or '').strip()
        generated = not password
        if generated:
            password = AccountService.generate_password()
        try:
            parent = AccountService.create_parent_account(current_user, request.form.get('name'),
                                                          request.form.get('email'), password,
                                                          **name_parts(request.form))
            log_activity(current_user.id, 'create_parent', f'Created parent account: {parent.email}', request.remote_addr)
            if generated:
                flash_new_credentials(parent, password)
            else:
                flash(f'Parent account created for {parent.email}.', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('parents')

    @route('/parents/<int:parent_id>/delete', methods=['POST'])
    def delete_parent(parent_id):
        try:
            name = RosterService.delete_parent(current_user, parent_id)
            log_activity(current_user.id, 'delete_parent', f'Deleted parent: {name}', request.remote_addr)
            flash(f'Parent "{name}" deleted successfully!', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return back('parents')

    # Posts

    @route('/posts/<int:post_id>/delete', methods=['POST'])
    def delete_post(post_id):
        try:
            PostService.delete_post(current_user, post_id)
            log_activity(current_user.id, 'delete_post', f'Deleted post {post_id}', request.remote_addr)
            flash('Post deleted.', 'success')
        except ServiceError as e:
            flash(e.message, 'danger')
        return redirect(request.referrer or url_for('main.dashboard'))
