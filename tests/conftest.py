import re

import pytest

from config import TestConfig
from schoollink import create_app, db
from schoollink.models.school_class import SchoolClass
from schoollink.models.student import Student
from schoollink.models.user import User

PASSWORD = 'Sunflower42'


@pytest.fixture
def app(tmp_path):
    class Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / 'uploads')

    app = create_app(Config)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def request_ctx(app):
    """Services build URLs for notifications and uploads, so they need a request context"""
    with app.test_request_context():
        yield


def make_user(role, email, name, password=PASSWORD):
    user = User(email=email, name=name, role=role)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin(app):
    return make_user('admin', 'admin@example.com', 'Ada Admin')


@pytest.fixture
def teacher(app):
    return make_user('teacher', 'teacher@example.com', 'Tom Teacher')


@pytest.fixture
def other_teacher(app):
    return make_user('teacher', 'other.teacher@example.com', 'Olive Other')


@pytest.fixture
def parent(app):
    return make_user('parent', 'parent@example.com', 'Paula Parent')


@pytest.fixture
def other_parent(app):
    return make_user('parent', 'other.parent@example.com', 'Oscar Other')


@pytest.fixture
def school(app, teacher, other_teacher, parent, other_parent):
    """Two classes with one student each, every student linked to its own parent"""
    grade_3a = SchoolClass(name='Grade 3A', teacher=teacher)
    grade_4b = SchoolClass(name='Grade 4B', teacher=other_teacher)
    jane = Student(name='Jane Doe', school_class=grade_3a)
    jane.parents.append(parent)
    omar = Student(name='Omar Other', school_class=grade_4b)
    omar.parents.append(other_parent)
    db.session.add_all([grade_3a, grade_4b, jane, omar])
    db.session.commit()
    return {'grade_3a': grade_3a, 'grade_4b': grade_4b, 'jane': jane, 'omar': omar}


def login(client, email, password=PASSWORD):
    return client.post('/auth/login', data={'email': email, 'password': password})


def logout(client):
    return client.get('/auth/logout')


def flashed_password(html):
    match = re.search(r'with password: ([A-Za-z0-9]+)\.', html)
    return match.group(1) if match else None
