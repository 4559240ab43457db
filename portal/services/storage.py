"""Firebase Storage uploads.

Documents keep the storage path. Readers get a signed URL made at request time.
"""
import uuid
from datetime import timedelta

from werkzeug.utils import secure_filename

from portal.firebase_init import get_bucket

IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'webp'}
MAX_PHOTO_BYTES = 2 * 1024 * 1024
SIGNED_URL_MINUTES = 60


def file_extension(filename):
    return filename.rsplit('.', 1)[1].lower() if filename and '.' in filename else ''


def upload_file(file_data, destination_path, content_type=None):
    """Store bytes or a readable stream at `destination_path` and return the path."""
    blob = get_bucket().blob(destination_path)
    if isinstance(file_data, bytes):
        blob.upload_from_string(file_data, content_type=content_type)
    else:
        blob.upload_from_file(file_data, content_type=content_type)
    return destination_path


def get_signed_url(storage_path, expiration_minutes=SIGNED_URL_MINUTES):
    """Signed GET URL for `storage_path`, or None when there is no such file."""
    if not storage_path:
        return None
    blob = get_bucket().blob(storage_path)
    if not blob.exists():
        return None
    return blob.generate_signed_url(
        version='v4',
        expiration=timedelta(minutes=expiration_minutes),
        method='GET'
    )


def file_api(doc):
    """API shape of a homework or submission with its attachment URL signed."""
    data = doc.to_api()
    if doc.file_path:
        data['fileUrl'] = get_signed_url(doc.file_path)
    return data


def upload_profile_photo(profile_id, file_data, ext):
    path = f'profiles/{profile_id}/photo.{ext}'
    content_type = 'image/jpeg' if ext in ('jpg', 'jpeg') else f'image/{ext}'
    return upload_file(file_data, path, content_type)


def upload_homework_attachment(session_id, file_storage):
    unique = uuid.uuid4().hex[:8]
    filename = secure_filename(file_storage.filename) or 'attachment'
    path = f'sessions/{session_id}/homework/{unique}_{filename}'
    return upload_file(file_storage.stream, path, file_storage.mimetype)


def upload_submission(homework_id, student_id, file_storage):
    filename = secure_filename(file_storage.filename) or 'submission'
    path = f'homework/{homework_id}/submissions/{student_id}/{filename}'
    return upload_file(file_storage.stream, path, file_storage.mimetype)
