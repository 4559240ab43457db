"""Firebase Admin bootstrap shared by the DAO, the auth gate and storage."""
import logging
import os

import firebase_admin
from firebase_admin import auth, credentials, firestore, storage

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIALS = './firebase-service-account.json'

_app = None
_db = None
_bucket = None


def _setting(app_config, key):
    return (app_config or {}).get(key) or os.environ.get(key, '')


def _credentials():
    path = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS', DEFAULT_CREDENTIALS)
    if os.path.exists(path):
        return credentials.Certificate(path)
    logger.info('Service account file %s not found, using application default credentials', path)
    return credentials.ApplicationDefault()


def init_firebase(app_config=None):
    """Initialise the Firebase app once per process."""
    global _app, _db, _bucket
    if _app is not None:
        return

    bucket_name = _setting(app_config, 'FIREBASE_STORAGE_BUCKET')
    project_id = _setting(app_config, 'FIREBASE_PROJECT_ID')
    options = {key: value for key, value in
               (('storageBucket', bucket_name), ('projectId', project_id)) if value}

    _app = firebase_admin.initialize_app(_credentials(), options=options or None)
    _db = firestore.client()
    _bucket = storage.bucket() if bucket_name else None


def get_db():
    init_firebase()
    return _db


def get_bucket():
    init_firebase()
    if _bucket is None:
        raise RuntimeError('FIREBASE_STORAGE_BUCKET is not configured')
    return _bucket


def get_auth():
    return auth
