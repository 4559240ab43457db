from datetime import datetime, timezone

from flask import Blueprint, current_app, g, jsonify, session

from portal import firestore_dao as dao
from portal.decorators import profile_required
from portal.forms import RoundsAdjustForm, form_error
from portal.services.japa import BEADS_PER_ROUND, JapaCounter

bp = Blueprint('chanting', __name__, url_prefix='/app/chanting')

# Bead position within the current round lives in the Flask session, keyed by date.
BEADS_SESSION_KEY = 'japa'


def today():
    return datetime.now(timezone.utc).date().isoformat()


def todays_rounds(email, date=None):
    log = dao.get_chanting_log(email, date or today())
    return log.rounds if log else 0


def _load_counter(email, date):
    state = session.get(BEADS_SESSION_KEY) or {}
    beads = state.get('beads', 0) if state.get('date') == date else 0
    return JapaCounter(beads=beads, rounds=todays_rounds(email, date))


def _save_beads(counter, date):
    session[BEADS_SESSION_KEY] = {'date': date, 'beads': counter.beads}


def _state(counter, date):
    goal = current_app.config.get('DAILY_ROUND_GOAL', 16)
    return {
        'date': date,
        'rounds': counter.rounds,
        'beads': counter.beads,
        'beadsPerRound': BEADS_PER_ROUND,
        'goal': goal,
        'progress': counter.progress(goal),
    }


@bp.route('')
@profile_required
def chanting_today():
    date = today()
    return jsonify(_state(_load_counter(g.current_user.email, date), date))


@bp.route('/bead', methods=['POST'])
@profile_required
def count_bead():
    """Advance the counter by one bead. A completed round is saved immediately."""
    email = g.current_user.email
    date = today()
    counter = _load_counter(email, date)
    completed = counter.increment()
    if completed:
        dao.upsert_chanting_log(email, date, counter.rounds)
    _save_beads(counter, date)
    return jsonify({'roundCompleted': completed, **_state(counter, date)})


@bp.route('/adjust', methods=['POST'])
@profile_required
def adjust_rounds():
    form = RoundsAdjustForm()
    if not form.validate_on_submit():
        return form_error(form)

    email = g.current_user.email
    date = today()
    counter = _load_counter(email, date)
    counter.adjust_rounds(form.delta.data)
    dao.upsert_chanting_log(email, date, counter.rounds)
    return jsonify({'success': True, **_state(counter, date)})


@bp.route('/history')
@profile_required
def chanting_history():
    history = dao.get_chanting_history(g.current_user.email)
    return jsonify({'history': [log.to_api() for log in history]})
