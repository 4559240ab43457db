import io

from portal import firestore_dao as dao


def test_get_my_profile(client, login_as):
    me = login_as('student', name='Lalita')
    data = client.get('/app/profile').get_json()
    assert data['profile']['id'] == me.id
    assert data['profile']['name'] == 'Lalita'


def test_update_keeps_identity_fields(client, login_as):
    me = login_as('student', name='Lalita')
    resp = client.put('/app/profile', json={
        'name': 'Lalita Sakhi', 'role': 'admin', 'email': 'hijack@iskcon-portal.org', 'hobbies': ['Painting'],
    })
    assert resp.status_code == 200
    stored = dao.get_profile(me.id)
    assert stored.name == 'Lalita Sakhi'
    assert stored.role == 'student'
    assert stored.email == me.email
    assert stored.hobbies == ['Painting']


def test_photo_upload(client, login_as, fake_bucket):
    me = login_as('student')
    resp = client.post('/app/profile/photo', data={'photo': (io.BytesIO(b'\x89PNG'), 'me.png')},
                       content_type='multipart/form-data')
    assert resp.status_code == 200
    assert f'profiles/{me.id}/photo.png' in fake_bucket.files
    assert dao.get_profile(me.id).photo_url == resp.get_json()['photoUrl']


def test_photo_upload_rejects_other_types(client, login_as):
    login_as('student')
    resp = client.post('/app/profile/photo', data={'photo': (io.BytesIO(b'%PDF'), 'me.pdf')},
                       content_type='multipart/form-data')
    assert resp.status_code == 400


def test_photo_upload_size_limit(client, login_as):
    login_as('student')
    big = io.BytesIO(b'0' * (2 * 1024 * 1024 + 1))
    resp = client.post('/app/profile/photo', data={'photo': (big, 'big.jpg')},
                       content_type='multipart/form-data')
    assert resp.status_code == 400


def test_photo_is_stored_as_a_path_and_signed_on_read(client, login_as, fake_db):
    me = login_as('student')
    resp = client.post('/app/profile/photo', data={'photo': (io.BytesIO(b'\x89PNG'), 'me.png')},
                       content_type='multipart/form-data')
    photo_url = resp.get_json()['photoUrl']
    assert fake_db.docs('profiles')[me.id]['photo_path'] == f'profiles/{me.id}/photo.png'
    assert 'signed=1' not in photo_url
    assert 'photoPath' not in client.get('/app/profile').get_json()['profile']

    redirected = client.get(photo_url)
    assert redirected.status_code == 302
    assert redirected.headers['Location'] == (
        f'https://storage.googleapis.com/test-bucket/profiles/{me.id}/photo.png?signed=1')


def test_photo_of_unknown_profile(client, login_as):
    me = login_as('student')
    assert client.get('/app/profile/missing/photo').status_code == 404
    assert client.get(f'/app/profile/{me.id}/photo').status_code == 404


def test_update_cannot_change_photo_path(client, login_as, fake_db):
    me = login_as('student', name='Lalita')
    client.post('/app/profile/photo', data={'photo': (io.BytesIO(b'\x89PNG'), 'me.png')},
                content_type='multipart/form-data')
    resp = client.put('/app/profile', json={'name': 'Lalita', 'photoPath': 'homework/x/submissions/y/z.txt'})
    assert resp.status_code == 200
    stored = fake_db.docs('profiles')[me.id]
    assert stored['photo_path'] == f'profiles/{me.id}/photo.png'
    assert stored['photo_url'] == f'/app/profile/{me.id}/photo'
