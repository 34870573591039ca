import os
import secrets
import time
from flask import current_app, url_for
from werkzeug.utils import secure_filename
from schoollink import db
from schoollink.errors import ValidationError

STUDENT_AVATARS = 'student-avatars/'
PARENT_AVATARS = 'parent-avatars/'
TEACHER_AVATARS = 'teacher-avatars/'
STUDENT_POSTS = 'student-posts/'
CLASS_ANNOUNCEMENTS = 'class-announcements/'

UPLOAD_URL_MARKER = '/uploads/'

IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
ATTACHMENT_EXTENSIONS = IMAGE_EXTENSIONS | {'pdf', 'doc', 'docx', 'txt'}


def _file_size(file):
    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _extension(filename):
    filename = secure_filename(filename or '')
    if '.' not in filename:
        return ''
    return filename.rsplit('.', 1)[1].lower()


def _human_size(max_bytes):
    return f'{max_bytes // (1024 * 1024)}MB'


def validate_upload(file, max_bytes, allowed_extensions):
    """Check an uploaded file before anything is written; returns its extension."""
    if file is None or not file.filename:
        raise ValidationError('Please choose a file to upload')
    ext = _extension(file.filename)
    if ext not in allowed_extensions:
        raise ValidationError(f'Unsupported file type. Allowed: {", ".join(sorted(allowed_extensions))}')
    size = _file_size(file)
    if size == 0:
        raise ValidationError('The selected file is empty')
    if size > max_bytes:
        raise ValidationError(f'File size must be less than {_human_size(max_bytes)}')
    return ext


def save_upload(file, prefix, max_bytes, allowed_extensions):
    """Store an upload under ``prefix`` with a timestamped random name and return its public URL."""
    ext = validate_upload(file, max_bytes, allowed_extensions)
    filename = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{ext}"
    relative_path = f'{prefix}{filename}'

    target_dir = os.path.join(current_app.config['UPLOAD_FOLDER'], prefix.rstrip('/'))
    os.makedirs(target_dir, exist_ok=True)
    file.save(os.path.join(target_dir, filename))
    current_app.logger.info(f'Stored upload {relative_path}')
    return url_for('main.uploaded_file', filename=relative_path)


def delete_upload(public_url):
    """Remove a previously stored file; missing files are ignored."""
    if not public_url or UPLOAD_URL_MARKER not in public_url:
        return
    relative_path = public_url.split(UPLOAD_URL_MARKER, 1)[1]
    if '..' in relative_path.split('/'):
        return
    path = os.path.join(current_app.config['UPLOAD_FOLDER'], *relative_path.split('/'))
    try:
        if os.path.isfile(path):
            os.remove(path)
    except OSError as e:
        current_app.logger.warning(f'Could not remove upload {relative_path}: {e}')


def save_attachment(file, prefix):
    """Store a post attachment; returns (image_url, file_url, file_name)."""
    url = save_upload(file, prefix, current_app.config['ATTACHMENT_MAX_BYTES'], ATTACHMENT_EXTENSIONS)
    if _extension(file.filename) in IMAGE_EXTENSIONS:
        return url, None, None
    return None, url, secure_filename(file.filename)


def _replace_avatar(record, file, prefix):
    url = save_upload(file, prefix, current_app.config['AVATAR_MAX_BYTES'], IMAGE_EXTENSIONS)
    old_url = record.avatar_url
    record.avatar_url = url
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        delete_upload(url)
        raise
    delete_upload(old_url)
    return url


def upload_student_avatar(student, file):
    return _replace_avatar(student, file, STUDENT_AVATARS)


def upload_parent_avatar(parent, file):
    return _replace_avatar(parent, file, PARENT_AVATARS)


def upload_teacher_avatar(teacher, file):
    return _replace_avatar(teacher, file, TEACHER_AVATARS)
