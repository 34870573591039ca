from schoollink import db
from datetime import datetime


class SchoolClass(db.Model):
    __tablename__ = 'classes'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    teacher = db.relationship('User', backref=db.backref('classes', lazy=True, order_by='SchoolClass.name'))
    students = db.relationship('Student', backref='school_class', lazy=True, order_by='Student.name')
    announcements = db.relationship('Post', backref='school_class', lazy=True,
                                    cascade='all, delete')

    def __repr__(self):
        return f'<SchoolClass {self.name}>'
