from portal.models import Homework
from portal.services.storage import file_api, get_signed_url, upload_file


def test_signed_url_only_for_existing_files(fake_bucket):
    assert get_signed_url(None) is None
    assert get_signed_url('sessions/s1/homework/missing.pdf') is None
    upload_file(b'notes', 'sessions/s1/homework/notes.pdf', 'application/pdf')
    assert get_signed_url('sessions/s1/homework/notes.pdf') == (
        'https://storage.googleapis.com/test-bucket/sessions/s1/homework/notes.pdf?signed=1')


def test_file_api_keeps_plain_links(fake_bucket):
    linked = Homework(session_id='s1', title='Read', file_url='https://vedabase.io/en/library/bg/2/')
    assert file_api(linked)['fileUrl'] == 'https://vedabase.io/en/library/bg/2/'

    upload_file(b'notes', 'sessions/s1/homework/notes.pdf')
    uploaded = Homework(session_id='s1', title='Read', file_path='sessions/s1/homework/notes.pdf')
    data = file_api(uploaded)
    assert data['fileUrl'].endswith('/sessions/s1/homework/notes.pdf?signed=1')
    assert 'filePath' not in data
