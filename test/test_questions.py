"""
Test cases for question groups and reported questions.
"""
import pytest


@pytest.fixture
def group(admin_client):
    response = admin_client.post('/api/admin/question-groups', json={'name': 'Geography', 'description': 'Maps'})
    assert response.status_code == 201
    return response.get_json()


@pytest.fixture
def question(admin_client, group):
    response = admin_client.post(f"/api/admin/question-groups/{group['id']}/questions", json={
        'title': 'Capital',
        'content': 'Capital of Italy?',
        'type': 'MULTIPLE_CHOICE',
        'options': ['Rome', 'Milan'],
        'correctAnswer': 'Rome',
        'difficulty': 'easy',
    })
    assert response.status_code == 201
    return response.get_json()


class TestQuestionGroups:

    def test_requires_admin(self, user_client):
        assert user_client.get('/api/admin/question-groups').status_code == 403

    def test_create_requires_name(self, admin_client):
        response = admin_client.post('/api/admin/question-groups', json={'name': '  '})
        assert response.status_code == 400

    def test_list_groups_with_counts(self, admin_client, group, question):
        groups = admin_client.get('/api/admin/question-groups').get_json()
        assert [(g['name'], g['_count']['questions']) for g in groups] == [('Geography', 1)]

    def test_group_questions(self, admin_client, group, question):
        assert question['difficulty'] == 'EASY'
        assert question['groupId'] == group['id']
        listed = admin_client.get(f"/api/admin/question-groups/{group['id']}/questions").get_json()
        assert [q['id'] for q in listed] == [question['id']]

    def test_missing_group(self, admin_client):
        assert admin_client.get('/api/admin/question-groups/999/questions').status_code == 404

    def test_question_validation(self, admin_client, group):
        response = admin_client.post(f"/api/admin/question-groups/{group['id']}/questions", json={
            'title': 'Bad',
            'content': 'Missing options',
            'type': 'ESSAY',
            'correctAnswer': 'x',
        })
        assert response.status_code == 400
        assert 'type' in {d['field'] for d in response.get_json()['details']}

    def test_multi_select_answer_must_use_options(self, admin_client, group):
        response = admin_client.post(f"/api/admin/question-groups/{group['id']}/questions", json={
            'title': 'Multi',
            'content': 'Pick',
            'type': 'MULTI_SELECT',
            'options': ['A', 'B', 'C'],
            'correctAnswer': 'A|D',
        })
        assert response.status_code == 400


class TestReportedQuestions:

    def test_user_reports_question(self, admin_client, user_client, group, question):
        response = user_client.post(f"/api/user/questions/{question['id']}/report", json={
            'suggestion': 'The answer should be Rome, Italy',
        })
        assert response.status_code == 201
        assert response.get_json()['status'] == 'PENDING'
        assert 'question' not in response.get_json()

        reports = admin_client.get(f"/api/admin/question-groups/{group['id']}/reported-questions").get_json()
        assert len(reports) == 1
        assert reports[0]['user']['email'] == 'user@example.com'
        assert reports[0]['question']['group']['name'] == 'Geography'

    def test_report_requires_suggestion(self, user_client, question):
        response = user_client.post(f"/api/user/questions/{question['id']}/report", json={})
        assert response.status_code == 400

    def test_report_unknown_question(self, user_client):
        response = user_client.post('/api/user/questions/999/report', json={'suggestion': 'x'})
        assert response.status_code == 404

    def test_resolve_report(self, admin_client, user_client, group, question):
        report = user_client.post(f"/api/user/questions/{question['id']}/report", json={
            'suggestion': 'Typo',
        }).get_json()
        url = f"/api/admin/question-groups/{group['id']}/reported-questions"

        response = admin_client.patch(url, json={'reportId': report['id'], 'status': 'RESOLVED'})
        assert response.status_code == 200
        assert response.get_json()['status'] == 'RESOLVED'

        invalid = admin_client.patch(url, json={'reportId': report['id'], 'status': 'IGNORED'})
        assert invalid.status_code == 400

    def test_resolve_report_from_other_group(self, admin_client, user_client, question):
        report = user_client.post(f"/api/user/questions/{question['id']}/report", json={
            'suggestion': 'Typo',
        }).get_json()
        other = admin_client.post('/api/admin/question-groups', json={'name': 'History'}).get_json()

        response = admin_client.patch(
            f"/api/admin/question-groups/{other['id']}/reported-questions",
            json={'reportId': report['id'], 'status': 'RESOLVED'},
        )
        assert response.status_code == 404
