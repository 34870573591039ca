from schoollink import db
from schoollink.utils.names import get_display_name
from datetime import datetime

# Many-to-many join between students and their parent accounts
student_parent = db.Table(
    'student_parent',
    db.Column('student_id', db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), primary_key=True),
    db.Column('parent_id', db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
)


class Student(db.Model):
    __tablename__ = 'students'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    first_name = db.Column(db.String(64))
    middle_name = db.Column(db.String(64))
    last_name = db.Column(db.String(64))
    suffix = db.Column(db.String(16))
    bio = db.Column(db.Text)
    grade = db.Column(db.String(32))
    age = db.Column(db.Integer)
    avatar_url = db.Column(db.String(256))
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    parents = db.relationship('User', secondary=student_parent, lazy=True,
                              backref=db.backref('children', lazy=True, order_by='Student.name'))

    @property
    def display_name(self):
        return get_display_name(self.first_name, self.last_name, self.middle_name, self.suffix, self.name)

    @property
    def class_name(self):
        return self.school_class.name if self.school_class else 'Not assigned'

    def __repr__(self):
        return f'<Student {self.name}>'
