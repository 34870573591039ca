from schoollink import db
from datetime import datetime

REACTION_TYPES = ('thumbs_up', 'heart', 'clap', 'smile')

REACTION_EMOJI = {
    'thumbs_up': '\U0001F44D',
    'heart': '❤️',
    'clap': '\U0001F44F',
    'smile': '\U0001F60A',
}

post_student_tags = db.Table(
    'post_student_tags',
    db.Column('post_id', db.Integer, db.ForeignKey('posts.id', ondelete='CASCADE'), primary_key=True),
    db.Column('student_id', db.Integer, db.ForeignKey('students.id', ondelete='CASCADE'), primary_key=True),
)


class Post(db.Model):
    __tablename__ = 'posts'

    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    image_url = db.Column(db.String(256))
    file_url = db.Column(db.String(256))
    file_name = db.Column(db.String(256))
    # Set only for class announcements; student posts are linked through tags
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id', ondelete='CASCADE'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    teacher = db.relationship('User', backref=db.backref('posts', lazy=True, cascade='all, delete'))
    tagged_students = db.relationship('Student', secondary=post_student_tags, lazy=True,
                                      backref=db.backref('tagged_posts', lazy=True))
    reactions = db.relationship('PostReaction', backref='post', lazy=True, cascade='all, delete')

    @property
    def is_announcement(self):
        return self.class_id is not None

    def __repr__(self):
        return f'<Post {self.id} by {self.teacher_id}>'


class PostReaction(db.Model):
    __tablename__ = 'post_reactions'
    __table_args__ = (
        db.UniqueConstraint('post_id', 'parent_id', 'reaction_type', name='uq_post_parent_reaction'),
    )

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    reaction_type = db.Column(db.String(20), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    parent = db.relationship('User', backref=db.backref('reactions', lazy=True, cascade='all, delete'))

    def __repr__(self):
        return f'<PostReaction {self.reaction_type} on {self.post_id} by {self.parent_id}>'
