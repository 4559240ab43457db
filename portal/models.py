"""
Firestore document models for the community portal.

Every entity is a dataclass with two serialised shapes:
  - `to_dict()` / `from_dict(data, doc_id)`: the snake_case Firestore document
  - `to_api()` / `from_api(payload)`: the camelCase JSON shape used by the SPA

The camelCase names are derived once per model class by `api_fields`, so
neither the DAO nor the routes spell out a field translation by hand.

Datetime fields are kept as native datetime objects since Firestore
handles them natively.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

from portal.errors import ValidationFailed

ROLES = ('student', 'mentor', 'admin')
CATEGORIES = ('Regular', 'Favourite', 'Sankalpa', 'Guest', 'Volunteer', 'Advanced seeker')
SESSION_TYPES = ('Regular', 'Camp', 'Event', 'Special')
SESSION_STATUSES = ('Upcoming', 'Ongoing', 'Completed')
SUBMISSION_STATUSES = ('Pending', 'Submitted', 'Graded')
RESOURCE_TYPES = ('book', 'video', 'lecture', 'photo')
MENTORSHIP_STATUSES = ('Pending', 'Accepted', 'Rejected')
NOTIFICATION_TYPES = ('quote', 'system')

OPTIONS_PER_QUESTION = 4


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_datetime(value) -> Optional[datetime]:
    """Convert a value to datetime. Accepts datetime objects, ISO-format
    strings, and Firestore DatetimeWithNanoseconds objects."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        value = value.replace("Z", "+00:00")
        try:
            return datetime.fromisoformat(value)
        except (ValueError, TypeError):
            return None
    return None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def camel_case(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


def _string_list(value) -> List[str]:
    if value is None or value == '':
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value if item not in (None, '')]


def _to_int(name: str, value) -> Optional[int]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationFailed(f'{camel_case(name)} must be a number')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f'{camel_case(name)} must be a number')


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Document):
        return value.to_api()
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


def _require(value, label: str):
    if not value or (isinstance(value, str) and not value.strip()):
        raise ValidationFailed(f'{label} is required')


def _one_of(value, allowed, label: str):
    if value not in allowed:
        raise ValidationFailed(f'{label} must be one of: {", ".join(allowed)}')


@lru_cache(maxsize=None)
def api_fields(cls) -> Dict[str, str]:
    """Map each dataclass field of `cls` to its camelCase API name."""
    return {f.name: camel_case(f.name) for f in fields(cls)}


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class Document:
    """Serialisation shared by all document dataclasses.

    Subclasses list their special fields in the class-level tuples below;
    everything else is copied through unchanged.
    """

    DATETIME_FIELDS = ()
    LIST_FIELDS = ()
    INT_FIELDS = ()
    NESTED = {}
    # Nested documents (quiz questions) keep their id inside the parent document.
    STORE_ID = False
    # Storage paths are set by the server only and never leave it.
    SERVER_FIELDS = ()

    @classmethod
    def _coerce(cls, name, value, from_api):
        if name in cls.DATETIME_FIELDS:
            return _parse_datetime(value)
        if name in cls.LIST_FIELDS:
            return _string_list(value)
        if name in cls.INT_FIELDS:
            return _to_int(name, value)
        if name in cls.NESTED:
            item_cls = cls.NESTED[name]
            if not isinstance(value, list):
                raise ValidationFailed(f'{camel_case(name)} must be a list')
            if from_api:
                return [item_cls.from_api(item) for item in value]
            return [item_cls.from_dict(item) for item in value]
        return value

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for name in api_fields(type(self)):
            if name == 'id' and not self.STORE_ID:
                continue
            value = getattr(self, name)
            if name in self.NESTED:
                value = [item.to_dict() for item in value]
            data[name] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None):
        kwargs = {}
        for name in api_fields(cls):
            if name == 'id' and not cls.STORE_ID:
                continue
            if name in data:
                kwargs[name] = cls._coerce(name, data[name], from_api=False)
        if not cls.STORE_ID:
            kwargs['id'] = doc_id
        return cls(**kwargs)

    def to_api(self) -> Dict[str, Any]:
        return {api_name: _jsonable(getattr(self, name))
                for name, api_name in api_fields(type(self)).items()
                if name not in self.SERVER_FIELDS}

    @classmethod
    def from_api(cls, payload: Dict[str, Any]):
        if not isinstance(payload, dict):
            raise ValidationFailed('Expected a JSON object')
        kwargs = {}
        for name, api_name in api_fields(cls).items():
            if name in cls.SERVER_FIELDS:
                continue
            if api_name in payload:
                kwargs[name] = cls._coerce(name, payload[api_name], from_api=True)
        return cls(**kwargs)

    def validate(self):
        return self


# ===========================================================================
# Profiles (devotees, mentors, admins)
# ===========================================================================

@dataclass
class Profile(Document):
    id: Optional[str] = None
    name: str = ""
    spiritual_name: Optional[str] = None
    email: str = ""
    phone: str = ""
    photo_url: Optional[str] = None
    photo_path: Optional[str] = None
    dob: Optional[str] = None
    native_place: Optional[str] = None
    current_address: Optional[str] = None
    branch: Optional[str] = None
    year_of_study: Optional[str] = None
    intro_video_url: Optional[str] = None
    role: str = "student"
    category: str = "Regular"
    goals: Optional[str] = None
    hobbies: List[str] = field(default_factory=list)
    skills: List[str] = field(default_factory=list)
    interests: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None

    DATETIME_FIELDS = ('created_at',)
    LIST_FIELDS = ('hobbies', 'skills', 'interests')
    SERVER_FIELDS = ('photo_path',)

    @property
    def display_name(self) -> str:
        return self.spiritual_name or self.name

    def validate(self):
        _require(self.name, 'Name')
        _one_of(self.role, ROLES, 'Role')
        _one_of(self.category, CATEGORIES, 'Category')
        return self


# ===========================================================================
# Sessions (scheduled gatherings)
# ===========================================================================

@dataclass
class Session(Document):
    id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    date: str = ""
    location: str = ""
    facilitator: str = ""
    type: str = "Regular"
    status: str = "Upcoming"
    attendee_ids: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None

    DATETIME_FIELDS = ('created_at',)
    LIST_FIELDS = ('attendee_ids',)

    def validate(self):
        _require(self.title, 'Title')
        _one_of(self.type, SESSION_TYPES, 'Type')
        _one_of(self.status, SESSION_STATUSES, 'Status')
        return self


# ===========================================================================
# Homework & submissions
# ===========================================================================

@dataclass
class Homework(Document):
    id: Optional[str] = None
    session_id: str = ""
    title: str = ""
    description: Optional[str] = None
    file_url: Optional[str] = None
    file_path: Optional[str] = None
    due_date: Optional[str] = None
    created_at: Optional[datetime] = None

    DATETIME_FIELDS = ('created_at',)
    SERVER_FIELDS = ('file_path',)

    def validate(self):
        _require(self.session_id, 'Session')
        _require(self.title, 'Title')
        return self


@dataclass
class Submission(Document):
    id: Optional[str] = None
    homework_id: str = ""
    student_id: str = ""
    file_url: Optional[str] = None
    file_path: Optional[str] = None
    status: str = "Pending"
    marks: Optional[int] = None
    feedback: Optional[str] = None
    submitted_at: Optional[datetime] = None

    DATETIME_FIELDS = ('submitted_at',)
    INT_FIELDS = ('marks',)
    SERVER_FIELDS = ('file_path',)

    def validate(self):
        _require(self.homework_id, 'Homework')
        _require(self.student_id, 'Student')
        _one_of(self.status, SUBMISSION_STATUSES, 'Status')
        return self


# ===========================================================================
# Quizzes
# ===========================================================================

@dataclass
class Question(Document):
    id: Optional[str] = None
    question: str = ""
    options: List[str] = field(default_factory=list)
    correct_answer: int = 0
    explanation: Optional[str] = None

    INT_FIELDS = ('correct_answer',)
    STORE_ID = True

    @classmethod
    def _coerce(cls, name, value, from_api):
        # Options keep their positions; blanks must stay so validation sees them.
        if name == 'options':
            if not isinstance(value, list):
                raise ValidationFailed('options must be a list')
            return ['' if item is None else str(item) for item in value]
        return super()._coerce(name, value, from_api)

    def validate(self, position: int = 1):
        _require(self.question, f'Question {position} text')
        if len(self.options) != OPTIONS_PER_QUESTION:
            raise ValidationFailed(f'Question {position} must have exactly {OPTIONS_PER_QUESTION} options')
        if any(not option.strip() for option in self.options):
            raise ValidationFailed(f'Question {position} has an empty option')
        if self.correct_answer is None or not 0 <= self.correct_answer < OPTIONS_PER_QUESTION:
            raise ValidationFailed(f'Question {position} correct answer must be between 0 and {OPTIONS_PER_QUESTION - 1}')
        return self

    def without_answer(self) -> Dict[str, Any]:
        data = self.to_api()
        data.pop('correctAnswer', None)
        data.pop('explanation', None)
        return data


@dataclass
class Quiz(Document):
    id: Optional[str] = None
    session_id: Optional[str] = None
    topic: str = ""
    questions: List[Question] = field(default_factory=list)
    created_at: Optional[datetime] = None

    DATETIME_FIELDS = ('created_at',)
    NESTED = {'questions': Question}

    def validate(self):
        _require(self.topic, 'Topic')
        if not self.questions:
            raise ValidationFailed('Add at least one question')
        for position, question in enumerate(self.questions, start=1):
            question.validate(position)
        return self

    def ensure_question_ids(self):
        for question in self.questions:
            if not question.id:
                question.id = uuid.uuid4().hex
        return self


@dataclass
class QuizResult(Document):
    id: Optional[str] = None
    quiz_id: str = ""
    student_id: str = ""
    score: int = 0
    total_questions: int = 0
    completed_at: Optional[datetime] = None

    DATETIME_FIELDS = ('completed_at',)
    INT_FIELDS = ('score', 'total_questions')

    def validate(self):
        _require(self.quiz_id, 'Quiz')
        _require(self.student_id, 'Student')
        if self.score is None or not 0 <= self.score <= 100:
            raise ValidationFailed('Score must be between 0 and 100')
        return self


# ===========================================================================
# Resources (digital library)
# ===========================================================================

@dataclass
class Resource(Document):
    id: Optional[str] = None
    title: str = ""
    type: str = "book"
    category: str = ""
    url: str = ""
    thumbnail_url: Optional[str] = None
    created_at: Optional[datetime] = None

    DATETIME_FIELDS = ('created_at',)

    def validate(self):
        _require(self.title, 'Title')
        _require(self.url, 'URL')
        _one_of(self.type, RESOURCE_TYPES, 'Type')
        return self


# ===========================================================================
# Mentorship
# ===========================================================================

@dataclass
class MentorshipRequest(Document):
    id: Optional[str] = None
    student_id: str = ""
    mentor_id: str = ""
    status: str = "Pending"
    message: str = ""
    created_at: Optional[datetime] = None

    DATETIME_FIELDS = ('created_at',)

    def validate(self):
        _require(self.student_id, 'Student')
        _require(self.mentor_id, 'Mentor')
        _one_of(self.status, MENTORSHIP_STATUSES, 'Status')
        return self


# ===========================================================================
# Chanting logs (one per user per day)
# ===========================================================================

@dataclass
class ChantingLog(Document):
    id: Optional[str] = None
    user_email: str = ""
    date: str = ""
    rounds: int = 0
    updated_at: Optional[datetime] = None

    DATETIME_FIELDS = ('updated_at',)
    INT_FIELDS = ('rounds',)


# ===========================================================================
# Notifications
# ===========================================================================

@dataclass
class Notification(Document):
    id: Optional[str] = None
    title: str = ""
    message: str = ""
    timestamp: Optional[datetime] = None
    is_read: bool = False
    type: Optional[str] = "system"

    DATETIME_FIELDS = ('timestamp',)

    def validate(self):
        _require(self.title, 'Title')
        if self.type is not None:
            _one_of(self.type, NOTIFICATION_TYPES, 'Type')
        return self
