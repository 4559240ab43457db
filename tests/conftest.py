import copy
import itertools
from types import SimpleNamespace

import firebase_admin.auth
import pytest

from config import TestConfig
from portal import create_app
from portal import firebase_init
from portal import firestore_dao as dao
from portal.decorators import SESSION_KEY
from portal.models import Profile


# ---------------------------------------------------------------------------
# In-memory Firestore
# ---------------------------------------------------------------------------

def _matches(data, flt):
    value = data.get(flt.field_path)
    if flt.op_string == '==':
        return value == flt.value
    if flt.op_string == 'array_contains':
        return isinstance(value, list) and flt.value in value
    if flt.op_string == 'in':
        return value in flt.value
    raise NotImplementedError(flt.op_string)


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, db, collection, doc_id):
        self._db = db
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self):
        return self._db.store.setdefault(self._collection, {})

    def get(self):
        return FakeSnapshot(self, self._docs.get(self.id))

    def set(self, data, merge=False):
        data = copy.deepcopy(data)
        if merge and self.id in self._docs:
            self._docs[self.id].update(data)
        else:
            self._docs[self.id] = data

    def update(self, data):
        if self.id not in self._docs:
            raise KeyError(self.id)
        self._docs[self.id].update(copy.deepcopy(data))

    def delete(self):
        self._docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, db, collection, filters=(), orders=(), limit=None):
        self._db = db
        self._collection = collection
        self._filters = tuple(filters)
        self._orders = tuple(orders)
        self._limit = limit

    def _copy(self, **changes):
        state = dict(filters=self._filters, orders=self._orders, limit=self._limit)
        state.update(changes)
        return FakeQuery(self._db, self._collection, **state)

    def where(self, filter=None):
        return self._copy(filters=self._filters + (filter,))

    def order_by(self, field_path, direction='ASCENDING'):
        return self._copy(orders=self._orders + ((field_path, direction),))

    def limit(self, count):
        return self._copy(limit=count)

    def stream(self):
        docs = self._db.store.get(self._collection, {})
        rows = [(doc_id, data) for doc_id, data in docs.items()
                if all(_matches(data, f) for f in self._filters)]
        for field_path, direction in reversed(self._orders):
            rows.sort(
                key=lambda row: (row[1].get(field_path) is not None, row[1].get(field_path)),
                reverse=direction == 'DESCENDING',
            )
        if self._limit is not None:
            rows = rows[:self._limit]
        return [FakeSnapshot(FakeDocument(self._db, self._collection, doc_id), data)
                for doc_id, data in rows]


class FakeCollection(FakeQuery):
    def __init__(self, db, name):
        super().__init__(db, name)

    def document(self, doc_id=None):
        return FakeDocument(self._db, self._collection, doc_id or self._db.next_id())

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return None, ref


class FakeBatch:
    MAX_WRITES = 500

    def __init__(self):
        self._ops = []

    def update(self, ref, data):
        self._ops.append(lambda: ref.update(data))

    def set(self, ref, data, merge=False):
        self._ops.append(lambda: ref.set(data, merge=merge))

    def delete(self, ref):
        self._ops.append(ref.delete)

    def commit(self):
        if len(self._ops) > self.MAX_WRITES:
            raise ValueError(f'maximum {self.MAX_WRITES} writes allowed per request')
        for op in self._ops:
            op()
        self._ops = []


class FakeFirestore:
    def __init__(self):
        self.store = {}
        self._ids = itertools.count(1)

    def next_id(self):
        return f'doc{next(self._ids)}'

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        return FakeBatch()

    def docs(self, name):
        return self.store.get(name, {})


# ---------------------------------------------------------------------------
# Storage and Auth
# ---------------------------------------------------------------------------

class FakeBlob:
    def __init__(self, bucket, path):
        self.bucket = bucket
        self.name = path

    def upload_from_string(self, data, content_type=None):
        self.bucket.files[self.name] = (data, content_type)

    def upload_from_file(self, file_obj, content_type=None):
        self.bucket.files[self.name] = (file_obj.read(), content_type)

    def exists(self):
        return self.name in self.bucket.files

    def generate_signed_url(self, version=None, expiration=None, method='GET'):
        return f'https://storage.googleapis.com/{self.bucket.name}/{self.name}?signed=1'


class FakeBucket:
    def __init__(self, name='test-bucket'):
        self.name = name
        self.files = {}

    def blob(self, path):
        return FakeBlob(self, path)


class FakeAuth:
    """Stands in for the firebase_admin.auth functions the portal calls."""

    def __init__(self):
        self.users = {}
        self.passwords = {}
        self.id_tokens = {}
        self.cookies = {}
        self._uids = itertools.count(1)

    def create_user(self, email=None, password=None, display_name=None):
        if email in self.users:
            raise firebase_admin.auth.EmailAlreadyExistsError('Email already exists', None, None)
        uid = f'uid{next(self._uids)}'
        self.users[email] = SimpleNamespace(uid=uid, email=email, display_name=display_name)
        self.passwords[email] = password
        return self.users[email]

    def issue_id_token(self, uid, email, **claims):
        token = f'id-token-{uid}'
        self.id_tokens[token] = {'uid': uid, 'email': email, **claims}
        return token

    def verify_id_token(self, id_token, *args, **kwargs):
        if id_token not in self.id_tokens:
            raise ValueError('Invalid ID token')
        return dict(self.id_tokens[id_token])

    def create_session_cookie(self, id_token, expires_in=None):
        claims = self.verify_id_token(id_token)
        cookie = f'cookie-{claims["uid"]}'
        self.cookies[cookie] = claims
        return cookie

    def verify_session_cookie(self, session_cookie, check_revoked=False):
        if session_cookie not in self.cookies:
            raise ValueError('Invalid session cookie')
        return dict(self.cookies[session_cookie])


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(firebase_init, '_app', object())
    monkeypatch.setattr(firebase_init, '_db', db)
    return db


@pytest.fixture
def fake_bucket(monkeypatch, fake_db):
    bucket = FakeBucket()
    monkeypatch.setattr(firebase_init, '_bucket', bucket)
    return bucket


@pytest.fixture
def fake_auth(monkeypatch):
    fake = FakeAuth()
    for name in ('create_user', 'verify_id_token', 'create_session_cookie', 'verify_session_cookie'):
        monkeypatch.setattr(firebase_admin.auth, name, getattr(fake, name))
    return fake


@pytest.fixture
def app(fake_db, fake_bucket, fake_auth):
    return create_app(TestConfig)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_profile(fake_db):
    def make(name='Devotee', role='student', email=None, uid=None, **fields):
        email = email or f'{name.lower().replace(" ", ".")}@iskcon-portal.org'
        profile = Profile(name=name, email=email, phone='+91 90000 00000', role=role, **fields)
        return dao.create_profile(profile, uid=uid)
    return make


@pytest.fixture
def login_as(client, fake_auth, make_profile):
    """Sign the test client in. Returns the caller's profile (None with profile=False)."""
    counter = itertools.count(1)

    def login(role='student', name=None, email=None, profile=True, **fields):
        n = next(counter)
        uid = f'login-uid-{n}'
        name = name or f'{role.capitalize()} {n}'
        email = email or f'{role}{n}@iskcon-portal.org'
        created = make_profile(name=name, role=role, email=email, uid=uid, **fields) if profile else None
        cookie = fake_auth.create_session_cookie(fake_auth.issue_id_token(uid, email, name=name))
        with client.session_transaction() as sess:
            sess[SESSION_KEY] = cookie
        return created

    return login
