from portal import firestore_dao as dao
from portal.routes.chanting import today
from portal.services.japa import BEADS_PER_ROUND


def test_initial_state(client, login_as):
    login_as('student')
    data = client.get('/app/chanting').get_json()
    assert data['rounds'] == 0
    assert data['beads'] == 0
    assert data['goal'] == 16
    assert data['beadsPerRound'] == 108


def test_108_beads_complete_a_round(client, login_as):
    me = login_as('student')
    for _ in range(BEADS_PER_ROUND - 1):
        data = client.post('/app/chanting/bead').get_json()
        assert data['roundCompleted'] is False
    assert data['beads'] == 107
    assert dao.get_chanting_log(me.email, today()) is None

    data = client.post('/app/chanting/bead').get_json()
    assert data['roundCompleted'] is True
    assert data['rounds'] == 1
    assert data['beads'] == 0
    assert dao.get_chanting_log(me.email, today()).rounds == 1


def test_adjust_rounds_floors_at_zero(client, login_as):
    me = login_as('student')
    assert client.post('/app/chanting/adjust', json={'delta': 3}).get_json()['rounds'] == 3
    assert client.post('/app/chanting/adjust', json={'delta': -5}).get_json()['rounds'] == 0
    assert dao.get_chanting_log(me.email, today()).rounds == 0


def test_adjust_rejects_zero(client, login_as):
    login_as('student')
    assert client.post('/app/chanting/adjust', json={'delta': 0}).status_code == 400


def test_progress_against_goal(client, login_as, app):
    app.config['DAILY_ROUND_GOAL'] = 4
    me = login_as('student')
    dao.upsert_chanting_log(me.email, today(), 2)
    assert client.get('/app/chanting').get_json()['progress'] == 50


def test_history(client, login_as):
    me = login_as('student')
    dao.upsert_chanting_log(me.email, '2024-06-01', 16)
    dao.upsert_chanting_log(me.email, '2024-06-02', 8)
    dao.upsert_chanting_log('someone.else@iskcon-portal.org', '2024-06-02', 4)
    history = client.get('/app/chanting/history').get_json()['history']
    assert [(h['date'], h['rounds']) for h in history] == [('2024-06-02', 8), ('2024-06-01', 16)]
