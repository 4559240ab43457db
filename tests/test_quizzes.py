import json
from types import SimpleNamespace

from portal import firestore_dao as dao
from portal.models import Question, Quiz, Session
from portal.services.gemini import DevotionalContent

QUESTIONS = [
    {'question': f'Question {i}', 'options': ['a', 'b', 'c', 'd'], 'correctAnswer': i % 4,
     'explanation': f'Because {i}'}
    for i in range(5)
]


class StubModels:
    def __init__(self, text):
        self.text = text

    def generate_content(self, model, contents, config=None):
        return SimpleNamespace(text=self.text)


def _attended_quiz(student_id):
    session = dao.create_session(Session(title='Chapter 2', date='2024-06-01', attendee_ids=[student_id]))
    return dao.create_quiz(Quiz.from_api({'sessionId': session.id, 'topic': 'Chapter 2', 'questions': QUESTIONS}))


def test_admin_creates_quiz(client, login_as):
    login_as('admin')
    session = dao.create_session(Session(title='S', date='2024-01-01'))
    resp = client.post('/quizzes', json={'sessionId': session.id, 'topic': 'Karma', 'questions': QUESTIONS})
    assert resp.status_code == 201
    quiz = resp.get_json()['quiz']
    assert len(quiz['questions']) == 5
    assert all(q['id'] for q in quiz['questions'])
    assert [q['topic'] for q in client.get('/quizzes').get_json()['quizzes']] == ['Karma']


def test_quiz_with_bad_question_is_rejected(client, login_as):
    login_as('admin')
    bad = dict(QUESTIONS[0], options=['a', 'b'])
    resp = client.post('/quizzes', json={'topic': 'Karma', 'questions': [bad]})
    assert resp.status_code == 400
    assert dao.get_quizzes() == []


def test_quiz_for_missing_session(client, login_as):
    login_as('admin')
    resp = client.post('/quizzes', json={'sessionId': 'nope', 'topic': 'Karma', 'questions': QUESTIONS})
    assert resp.status_code == 404


def test_delete_quiz(client, login_as):
    login_as('admin')
    quiz = dao.create_quiz(Quiz.from_api({'topic': 'Karma', 'questions': QUESTIONS}))
    assert client.delete(f'/quizzes/{quiz.id}').status_code == 200
    assert client.delete(f'/quizzes/{quiz.id}').status_code == 404


def test_generate_quiz_offline(client, login_as):
    login_as('admin')
    resp = client.post('/quizzes/generate', json={'topic': 'Bhakti'})
    assert resp.status_code == 503


def test_generate_quiz_drafts_questions(client, login_as, app):
    login_as('admin')
    app.extensions['devotional_content'] = DevotionalContent(
        client=SimpleNamespace(models=StubModels(json.dumps(QUESTIONS))))
    resp = client.post('/quizzes/generate', json={'topic': 'Bhakti'})
    assert resp.status_code == 200
    assert len(resp.get_json()['questions']) == 5
    assert dao.get_quizzes() == []


def test_take_quiz_hides_answers(client, login_as):
    me = login_as('student')
    quiz = _attended_quiz(me.id)
    data = client.get(f'/app/quizzes/{quiz.id}').get_json()
    assert len(data['questions']) == 5
    assert all('correctAnswer' not in q for q in data['questions'])


def test_submitting_score_80_clears_pending(client, login_as):
    me = login_as('student')
    quiz = _attended_quiz(me.id)
    assert [q['id'] for q in client.get('/app/quizzes').get_json()['pending']] == [quiz.id]

    answers = {'0': 0, '1': 1, '2': 2, '3': 3}
    resp = client.post(f'/app/quizzes/{quiz.id}/submit', json={'answers': answers})
    data = resp.get_json()
    assert data['score'] == 80
    assert data['correctCount'] == 4
    assert data['review'][4]['isCorrect'] is False
    assert data['review'][4]['explanation'] == 'Because 4'

    mine = client.get('/app/quizzes').get_json()
    assert mine['pending'] == []
    assert mine['completed'][0]['score'] == 80
    assert mine['completed'][0]['topic'] == 'Chapter 2'


def test_quiz_can_only_be_taken_once(client, login_as):
    me = login_as('student')
    quiz = _attended_quiz(me.id)
    client.post(f'/app/quizzes/{quiz.id}/submit', json={'answers': {}})
    resp = client.post(f'/app/quizzes/{quiz.id}/submit', json={'answers': {}})
    assert resp.status_code == 409


def test_unattended_quiz_is_not_pending(client, login_as):
    login_as('student')
    session = dao.create_session(Session(title='Elsewhere', date='2024-06-01'))
    dao.create_quiz(Quiz(session_id=session.id, topic='T', questions=[
        Question(question='Q', options=['a', 'b', 'c', 'd'], correct_answer=0),
    ]))
    assert client.get('/app/quizzes').get_json()['pending'] == []


def test_submission_must_be_an_object(client, login_as, fake_db):
    me = login_as('student')
    quiz = _attended_quiz(me.id)
    resp = client.post(f'/app/quizzes/{quiz.id}/submit', json=[0, 1])
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Expected a JSON object'
    resp = client.post(f'/app/quizzes/{quiz.id}/submit', json={'answers': [0, 1]})
    assert resp.status_code == 400
    assert fake_db.docs('quiz_results') == {}
