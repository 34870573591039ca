from schoollink.models.user import User
from schoollink.services.post_service import PostService

from conftest import PASSWORD, login


def test_create_parent_keeps_the_teachers_session(client, teacher):
    login(client, teacher.email)

    response = client.post('/api/create-parent', json={
        'email': 'new.parent@example.com', 'password': PASSWORD, 'name': 'Nina Parent'})

    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True
    assert body['parent']['email'] == 'new.parent@example.com'
    assert User.query.filter_by(email='new.parent@example.com').one().role == 'parent'
    # Still logged in as the teacher
    assert client.get('/teacher/classes').status_code == 200


def test_create_parent_requires_all_fields(client, teacher):
    login(client, teacher.email)

    response = client.post('/api/create-parent', json={'email': 'x@example.com'})

    assert response.status_code == 400
    assert 'error' in response.get_json()


def test_create_parent_rejects_non_object_body_and_non_string_fields(client, teacher):
    login(client, teacher.email)

    response = client.post('/api/create-parent', json=['x@example.com', PASSWORD, 'X'])
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Request body must be a JSON object'}

    response = client.post('/api/create-parent', json={
        'email': 'num@example.com', 'password': PASSWORD, 'name': 42})
    assert response.status_code == 400
    assert response.get_json() == {'error': 'name must be a string'}
    assert User.query.filter_by(email='num@example.com').first() is None


def test_create_parent_rejects_weak_password(client, teacher):
    login(client, teacher.email)

    response = client.post('/api/create-parent', json={
        'email': 'weak@example.com', 'password': 'abc', 'name': 'Weak'})

    assert response.status_code == 400


def test_create_parent_duplicate_email_returns_conflict(client, teacher, parent):
    login(client, teacher.email)

    response = client.post('/api/create-parent', json={
        'email': parent.email, 'password': PASSWORD, 'name': 'Again'})

    assert response.status_code == 409
    assert response.get_json()['existing_parent']['id'] == parent.id


def test_create_parent_is_forbidden_for_parents_and_anonymous(client, parent):
    payload = {'email': 'x@example.com', 'password': PASSWORD, 'name': 'X'}
    assert client.post('/api/create-parent', json=payload).status_code == 401

    login(client, parent.email)
    assert client.post('/api/create-parent', json=payload).status_code == 403


def test_test_env_reports_key_without_revealing_it(app, client, admin):
    login(client, admin.email)

    body = client.get('/api/test-env').get_json()

    assert body == {'hasSecretKey': True, 'usingDefaultSecretKey': False,
                    'keyLength': len('test-secret-key'), 'keyPrefix': 'test...'}


def test_test_env_is_admin_only(client, teacher):
    login(client, teacher.email)

    assert client.get('/api/test-env').status_code == 403


def test_reaction_api_toggles(app, client, teacher, parent, school):
    with app.test_request_context():
        post = PostService.create_student_post(teacher, [school['jane'].id], 'Well done!')
    login(client, parent.email)

    first = client.post(f'/api/posts/{post.id}/reactions', json={'reaction_type': 'heart'}).get_json()
    second = client.post(f'/api/posts/{post.id}/reactions', json={'reaction_type': 'heart'}).get_json()

    assert first == {'active': True, 'reactions': {'thumbs_up': 0, 'heart': 1, 'clap': 0, 'smile': 0}}
    assert second['active'] is False
    assert second['reactions']['heart'] == 0


def test_reaction_api_rejects_unknown_type(app, client, teacher, parent, school):
    with app.test_request_context():
        post = PostService.create_student_post(teacher, [school['jane'].id], 'Well done!')
    login(client, parent.email)

    response = client.post(f'/api/posts/{post.id}/reactions', json={'reaction_type': 'boo'})

    assert response.status_code == 400


def test_reaction_api_rejects_non_object_body(app, client, teacher, parent, school):
    with app.test_request_context():
        post = PostService.create_student_post(teacher, [school['jane'].id], 'Well done!')
    login(client, parent.email)

    response = client.post(f'/api/posts/{post.id}/reactions', json=['heart'])

    assert response.status_code == 400
    assert response.get_json() == {'error': 'Request body must be a JSON object'}


def test_reactors_api_for_author(app, client, teacher, parent, school):
    with app.test_request_context():
        post = PostService.create_student_post(teacher, [school['jane'].id], 'Well done!')
        PostService.toggle_reaction(parent, post.id, 'clap')
    login(client, teacher.email)

    body = client.get(f'/api/posts/{post.id}/reactions/clap').get_json()

    assert body['parents'] == [{'id': parent.id, 'name': 'Paula Parent', 'email': parent.email}]
