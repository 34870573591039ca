from schoollink.models.post import Post
from schoollink.models.school_class import SchoolClass

from conftest import flashed_password, login, logout


def test_teacher_enrolls_student_with_new_parent_who_can_then_log_in(client, teacher):
    login(client, teacher.email)
    client.post('/teacher/classes/create', data={'name': 'Grade 3A'})
    grade_3a = SchoolClass.query.filter_by(name='Grade 3A').one()

    response = client.post('/teacher/students/create', data={
        'name': 'Jane Doe',
        'class_id': grade_3a.id,
        'parent_mode': 'new',
        'parent_name': 'Jane Parent',
        'parent_email': 'jane.parent@example.com',
        'parent_password': '',
    }, follow_redirects=True)
    password = flashed_password(response.get_data(as_text=True))
    assert password
    logout(client)

    assert login(client, 'jane.parent@example.com', password).status_code == 302
    html = client.get('/parent/children').get_data(as_text=True)

    assert 'Jane Doe' in html
    assert 'Grade 3A' in html


def test_teacher_post_reaches_parent_and_reaction_reaches_teacher(client, teacher, parent, school):
    jane = school['jane']
    login(client, teacher.email)
    client.post(f'/teacher/students/{jane.id}/posts', data={'content': 'Great job on the spelling test!'})
    post = Post.query.filter_by(content='Great job on the spelling test!').one()
    logout(client)

    login(client, parent.email)
    feed = client.get('/parent/posts').get_data(as_text=True)
    assert 'Great job on the spelling test!' in feed
    assert 'Tom Teacher' in feed
    assert 'Jane Doe' in feed
    client.post(f'/parent/posts/{post.id}/react', data={'reaction_type': 'heart'})
    logout(client)

    login(client, teacher.email)
    reactors = client.get(f'/teacher/posts/{post.id}/reactions/heart')

    assert reactors.status_code == 200
    assert 'Paula Parent' in reactors.get_data(as_text=True)
