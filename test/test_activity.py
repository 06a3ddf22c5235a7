"""
Test cases for joining and playing live activities.
"""
from datetime import datetime, timedelta

import pytest

from atomq import db
from atomq.activity.models import ActivityParticipant
from atomq.auth.models import User


QUESTIONS = [
    {
        'title': 'Capital',
        'content': 'What is the capital of France?',
        'type': 'MULTIPLE_CHOICE',
        'options': ['Paris', 'Rome', 'Madrid'],
        'correctAnswer': 'Paris',
    },
    {
        'title': 'Sky',
        'content': 'The sky is green.',
        'type': 'TRUE_FALSE',
        'options': ['True', 'False'],
        'correctAnswer': 'False',
    },
]


@pytest.fixture
def activity(admin_client):
    """An active activity with two questions, created through the admin API."""
    response = admin_client.post('/api/admin/activities', json={
        'title': 'Friday Quiz',
        'accessKey': 'fri42',
        'status': 'ACTIVE',
    })
    assert response.status_code == 201
    created = response.get_json()

    question_ids = []
    for question in QUESTIONS:
        added = admin_client.post(f"/api/admin/activities/{created['id']}/questions", json=question)
        assert added.status_code == 201
        question_ids.append(added.get_json()['questionId'])

    return {'id': created['id'], 'key': created['accessKey'], 'question_ids': question_ids}


def _start(admin_client, key):
    response = admin_client.post(f'/api/activity/{key}/session', json={'action': 'start'})
    assert response.status_code == 200
    return response.get_json()


class TestJoinActivity:

    def test_join_requires_login(self, client, activity):
        response = client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        assert response.status_code == 401

    def test_join_with_lowercase_key(self, app, user_client, activity):
        response = user_client.post('/api/user/activities', json={'accessKey': 'fri42'})
        assert response.status_code == 200
        assert response.get_json()['id'] == activity['id']

        with app.app_context():
            assert ActivityParticipant.query.filter_by(activity_id=activity['id']).count() == 1

    def test_join_missing_key(self, user_client):
        response = user_client.post('/api/user/activities', json={})
        assert response.status_code == 400

    def test_join_invalid_key(self, user_client, activity):
        response = user_client.post('/api/user/activities', json={'accessKey': 'NOPE'})
        assert response.status_code == 404
        assert response.get_json()['error'] == 'Invalid access key'

    def test_join_inactive_activity(self, admin_client, user_client, activity):
        admin_client.put(f"/api/admin/activities/{activity['id']}", json={'status': 'DRAFT'})
        response = user_client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Activity is not currently active'

    def test_duplicate_join_is_noop(self, app, user_client, activity):
        assert user_client.post('/api/user/activities', json={'accessKey': 'FRI42'}).status_code == 200
        assert user_client.post('/api/user/activities', json={'accessKey': 'FRI42'}).status_code == 200

        with app.app_context():
            assert ActivityParticipant.query.filter_by(activity_id=activity['id']).count() == 1

    def test_list_activities_filtered_by_status(self, user_client, activity):
        response = user_client.get('/api/user/activities?status=ACTIVE')
        assert response.status_code == 200
        body = response.get_json()
        assert [a['accessKey'] for a in body] == ['FRI42']
        assert body[0]['_count'] == {'questions': 2, 'participants': 0, 'sessions': 0}

        assert user_client.get('/api/user/activities?status=COMPLETED').get_json() == []

    def test_list_activities_rejects_unknown_status(self, user_client):
        assert user_client.get('/api/user/activities?status=BOGUS').status_code == 400


class TestActivitySession:

    def test_session_created_waiting(self, user_client, activity):
        response = user_client.get('/api/activity/fri42/session')
        assert response.status_code == 200
        body = response.get_json()
        assert body['status'] == 'WAITING'
        assert body['questions'] == []
        assert body['totalQuestions'] == 2

    def test_session_unknown_key(self, user_client):
        assert user_client.get('/api/activity/NOPE/session').status_code == 404

    def test_only_admin_can_start(self, user_client, activity):
        response = user_client.post('/api/activity/FRI42/session', json={'action': 'start'})
        assert response.status_code == 403

    def test_start_next_finish(self, admin_client, activity):
        started = _start(admin_client, 'FRI42')
        assert started['status'] == 'PLAYING'
        assert started['currentQuestion'] == 0
        assert started['startTime'] is not None

        again = admin_client.post('/api/activity/FRI42/session', json={'action': 'start'})
        assert again.status_code == 400

        moved = admin_client.post('/api/activity/FRI42/session', json={'action': 'next'})
        assert moved.get_json()['currentQuestion'] == 1

        past_end = admin_client.post('/api/activity/FRI42/session', json={'action': 'next'})
        assert past_end.status_code == 400

        finished = admin_client.post('/api/activity/FRI42/session', json={'action': 'finish'})
        assert finished.status_code == 200
        assert finished.get_json()['status'] == 'FINISHED'
        assert finished.get_json()['endTime'] is not None

    def test_invalid_action(self, admin_client, activity):
        response = admin_client.post('/api/activity/FRI42/session', json={'action': 'dance'})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid action'

    def test_questions_hide_correct_answers(self, admin_client, user_client, activity):
        _start(admin_client, 'FRI42')
        body = user_client.get('/api/activity/FRI42/session').get_json()
        assert len(body['questions']) == 2
        for item in body['questions']:
            assert 'correctAnswer' not in item['question']


class TestAnswering:

    def _answer(self, client, question_id, user_answer, time_spent=None):
        payload = {'action': 'answer', 'questionId': question_id, 'userAnswer': user_answer}
        if time_spent is not None:
            payload['timeSpent'] = time_spent
        return client.post('/api/activity/FRI42/session', json=payload)

    def test_correct_answer_scores_by_time(self, app, admin_client, user_client, activity):
        user_client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        _start(admin_client, 'FRI42')

        response = self._answer(user_client, activity['question_ids'][0], 'Paris', 3.7)
        assert response.status_code == 201
        body = response.get_json()
        assert body['isCorrect'] is True
        assert body['pointsEarned'] == 850

        with app.app_context():
            participant = ActivityParticipant.query.filter_by(activity_id=activity['id']).one()
            assert participant.score == 850

    def test_wrong_answer_scores_zero(self, admin_client, user_client, activity):
        user_client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        _start(admin_client, 'FRI42')

        body = self._answer(user_client, activity['question_ids'][1], 'True', 1).get_json()
        assert body['isCorrect'] is False
        assert body['pointsEarned'] == 0

    def test_missing_time_counts_as_zero(self, admin_client, user_client, activity):
        user_client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        _start(admin_client, 'FRI42')

        body = self._answer(user_client, activity['question_ids'][0], 'Paris').get_json()
        assert body['pointsEarned'] == 1000
        assert body['timeSpent'] == 0

    def test_negative_time_rejected(self, admin_client, user_client, activity):
        user_client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        _start(admin_client, 'FRI42')

        assert self._answer(user_client, activity['question_ids'][0], 'Paris', -1).status_code == 400
        assert self._answer(user_client, activity['question_ids'][0], 'Paris', 'fast').status_code == 400

    def test_answer_before_start_rejected(self, user_client, activity):
        user_client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        response = self._answer(user_client, activity['question_ids'][0], 'Paris', 1)
        assert response.status_code == 400

    def test_answer_requires_joining(self, admin_client, user_client, activity):
        _start(admin_client, 'FRI42')
        response = self._answer(user_client, activity['question_ids'][0], 'Paris', 1)
        assert response.status_code == 403

    def test_answer_unknown_question(self, admin_client, user_client, activity):
        user_client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        _start(admin_client, 'FRI42')
        response = self._answer(user_client, 9999, 'Paris', 1)
        assert response.status_code == 404

    def test_second_answer_rejected(self, app, admin_client, user_client, activity):
        user_client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        _start(admin_client, 'FRI42')

        assert self._answer(user_client, activity['question_ids'][0], 'Paris', 0).status_code == 201
        assert self._answer(user_client, activity['question_ids'][0], 'Paris', 0).status_code == 400

        with app.app_context():
            participant = ActivityParticipant.query.filter_by(activity_id=activity['id']).one()
            assert participant.score == 1000

    def test_session_lists_own_answers(self, admin_client, user_client, activity):
        user_client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        _start(admin_client, 'FRI42')
        self._answer(user_client, activity['question_ids'][0], 'Paris', 2)

        body = user_client.get('/api/activity/FRI42/session').get_json()
        assert [a['questionId'] for a in body['answers']] == [activity['question_ids'][0]]

        admin_view = admin_client.get('/api/activity/FRI42/session').get_json()
        assert admin_view['answers'] == []


class TestLeaderboard:

    def test_leaderboard_orders_by_score_then_join_time(self, app, login_as, admin_client, activity):
        first = login_as('first@example.com', name='First')
        second = login_as('second@example.com', name='Second')
        third = login_as('third@example.com', name='Third')
        for client in (first, second, third):
            client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        _start(admin_client, 'FRI42')

        # Join times run against row order: third joined first
        base = datetime(2024, 1, 1, 9, 0, 0)
        with app.app_context():
            for email, offset in (('third@example.com', 0), ('second@example.com', 1), ('first@example.com', 2)):
                participant = (
                    ActivityParticipant.query.join(User)
                    .filter(User.email == email, ActivityParticipant.activity_id == activity['id'])
                    .one()
                )
                participant.joined_at = base + timedelta(minutes=offset)
            db.session.commit()

        q1 = activity['question_ids'][0]
        answer = {'action': 'answer', 'questionId': q1, 'userAnswer': 'Paris'}
        first.post('/api/activity/FRI42/session', json={**answer, 'timeSpent': 5})
        second.post('/api/activity/FRI42/session', json={**answer, 'timeSpent': 1})
        third.post('/api/activity/FRI42/session', json={**answer, 'timeSpent': 5})

        response = first.get('/api/activity/FRI42/leaderboard')
        assert response.status_code == 200
        rows = response.get_json()
        assert [(r['user']['email'], r['score'], r['rank']) for r in rows] == [
            ('second@example.com', 950, 1),
            ('third@example.com', 750, 2),
            ('first@example.com', 750, 3),
        ]

    def test_participants_by_score(self, admin_client, user_client, activity):
        user_client.post('/api/user/activities', json={'accessKey': 'FRI42'})
        response = admin_client.get('/api/activity/FRI42/participants')
        assert response.status_code == 200
        assert [p['user']['email'] for p in response.get_json()] == ['user@example.com']

    def test_leaderboard_requires_login(self, client, activity):
        assert client.get('/api/activity/FRI42/leaderboard').status_code == 401

    def test_leaderboard_unknown_key(self, user_client):
        assert user_client.get('/api/activity/NOPE/leaderboard').status_code == 404
