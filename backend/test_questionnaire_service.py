"""
Testes do serviço de questionários sobre o armazenamento local
"""
from datetime import datetime, timezone

import pytest

from conftest import COMPANY, NOW
from portal_calma.models.questionnaire import QuestionnaireCreateRequest, ResponseAnswer
from portal_calma.utils.auth import StaticTenantResolver
from portal_calma.utils.errors import FetchFailure, MalformedAnswer, QuestionnaireNotFound
from portal_calma.utils.questionnaire_analyzer import get_empty_metrics
from portal_calma.utils.questionnaire_service import QuestionnaireService
from portal_calma.utils.row_store import ANALYTICS, QUESTIONNAIRES, RESPONSES, RowStore


class FailingStore(RowStore):
    """Store cujas consultas sempre falham"""

    def select(self, table, filters=None, order_by=None, descending=False):
        raise FetchFailure(table, 'HTTP 500: indisponível')

    def insert(self, table, row):
        raise FetchFailure(table, 'HTTP 500: indisponível')

    def update(self, table, row_id, fields):
        raise FetchFailure(table, 'HTTP 500: indisponível')

    def delete(self, table, filters):
        raise FetchFailure(table, 'HTTP 500: indisponível')


def answers(*pairs):
    return [ResponseAnswer(question_id=qid, answer=value, question_text=f'Pergunta {qid}') for qid, value in pairs]


def test_metrics_from_stored_rows(service):
    questionnaire = service.get_default_questionnaire(COMPANY)
    service.submit_questionnaire_response(questionnaire.id, 'u1', COMPANY, 'Sales', answers((1, 3), (9, 8)))
    service.submit_questionnaire_response(questionnaire.id, 'u2', COMPANY, 'Sales', answers((1, 5), (9, 6)))

    result = service.compute_company_questionnaire_metrics(now=datetime.now(timezone.utc))

    assert result.ok
    assert result.error is None
    assert result.malformed_answers == 0
    metrics = result.metrics
    assert metrics.total_questionnaires == 1
    assert metrics.active_questionnaires == 1
    assert metrics.total_responses == 2
    assert metrics.average_completion_rate == 100
    [sales] = metrics.responses_by_department
    assert sales.average_score == 5.5
    [satisfaction] = metrics.department_satisfaction
    assert satisfaction.stress_level == 4
    assert satisfaction.wellbeing_score == 7
    assert len(metrics.response_evolution) == 30
    assert sum(day.responses for day in metrics.response_evolution) == 2


def test_metrics_tenant_failure_returns_empty_metrics(store):
    service = QuestionnaireService(store, StaticTenantResolver(''))

    result = service.compute_company_questionnaire_metrics()

    assert not result.ok
    assert result.error == 'tenant_resolution_failure'
    assert result.metrics == get_empty_metrics()
    assert service.get_company_questionnaire_metrics() == get_empty_metrics()


def test_metrics_fetch_failure_returns_empty_metrics():
    service = QuestionnaireService(FailingStore(), StaticTenantResolver(COMPANY))

    result = service.compute_company_questionnaire_metrics()

    assert not result.ok
    assert result.error == 'fetch_failure'
    assert result.metrics == get_empty_metrics()


def test_header_company_id_takes_precedence(service):
    other = service.create_questionnaire('outra', QuestionnaireCreateRequest(title='Outra', questions=[]))
    result = service.compute_company_questionnaire_metrics(company_id='outra')
    assert result.metrics.total_questionnaires == 1
    assert result.metrics.questionnaire_performance[0].questionnaire == other.title


def test_malformed_answers_are_counted(service, store):
    questionnaire = service.get_default_questionnaire(COMPANY)
    store.insert(RESPONSES, {
        'id': 'r-bad',
        'questionnaire_id': questionnaire.id,
        'user_id': 'u1',
        'company_id': COMPANY,
        'department': 'RH',
        'responses': [{'question_id': 99, 'answer': 3, 'question_text': 'Removida'}],
        'completion_status': 'completed',
        'submitted_at': '2024-05-29T10:00:00+00:00',
        'created_at': '2024-05-29T10:00:00+00:00',
    })

    result = service.compute_company_questionnaire_metrics()

    assert result.ok
    assert result.malformed_answers == 1


def test_invalid_rows_are_skipped(service, store):
    store.insert(QUESTIONNAIRES, {'id': 'broken', 'company_id': COMPANY})
    service.get_default_questionnaire(COMPANY)
    assert len(service.get_all_company_questionnaires(COMPANY)) == 1


def test_default_questionnaire_is_created_once(service):
    first = service.get_default_questionnaire(COMPANY)
    second = service.get_default_questionnaire(COMPANY)

    assert first.id == second.id
    assert first.status == 'active'
    assert first.title == 'Questionário de Bem-Estar Padrão'
    assert len(first.questions) == 10
    tags = {q.id: q.semantic_tag for q in first.questions if q.semantic_tag != 'untagged'}
    assert tags == {1: 'stress', 3: 'satisfaction', 7: 'worklife', 9: 'wellbeing'}


def test_submit_rejects_unknown_question(service):
    questionnaire = service.get_default_questionnaire(COMPANY)
    with pytest.raises(MalformedAnswer) as excinfo:
        service.submit_questionnaire_response(questionnaire.id, 'u1', COMPANY, 'RH', answers((1, 3), (42, 1)))
    assert excinfo.value.question_ids == [42]


def test_submit_to_other_company_questionnaire(service):
    questionnaire = service.get_default_questionnaire('outra')
    with pytest.raises(QuestionnaireNotFound):
        service.submit_questionnaire_response(questionnaire.id, 'u1', COMPANY, 'RH', answers((1, 3)))


def test_delete_cascades_to_responses(service, store):
    questionnaire = service.get_default_questionnaire(COMPANY)
    service.submit_questionnaire_response(questionnaire.id, 'u1', COMPANY, 'RH', answers((1, 3)))
    service.submit_questionnaire_response(questionnaire.id, 'u2', COMPANY, 'TI', answers((1, 4)))

    service.delete_questionnaire(questionnaire.id)

    assert service.get_questionnaire_by_id(questionnaire.id) is None
    assert store.select(RESPONSES, {'questionnaire_id': questionnaire.id}) == []
    with pytest.raises(QuestionnaireNotFound):
        service.delete_questionnaire(questionnaire.id)


def test_status_update_and_trigger(service):
    questionnaire = service.create_custom_questionnaire(COMPANY, 'Clima Organizacional')
    assert questionnaire.status == 'inactive'
    assert questionnaire.title.startswith('Clima Organizacional - ')
    assert not questionnaire.notification_sent

    completed = service.update_questionnaire_status(questionnaire.id, 'completed')
    assert completed.status == 'completed'

    triggered = service.trigger_questionnaire(questionnaire.id, COMPANY, ['RH'])
    assert triggered.status == 'active'
    assert triggered.notification_sent

    with pytest.raises(QuestionnaireNotFound):
        service.update_questionnaire_status('missing', 'active')


def test_custom_questionnaire_unknown_template(service):
    with pytest.raises(QuestionnaireNotFound):
        service.create_custom_questionnaire(COMPANY, 'Inexistente')


def test_custom_questionnaire_overrides(service):
    questionnaire = service.create_custom_questionnaire(
        COMPANY, 'Saúde Mental e Estresse', title='Pulso de maio', target_department='TI',
    )
    assert questionnaire.title == 'Pulso de maio'
    assert questionnaire.description == 'Foca especificamente em aspectos de saúde mental e gestão de estresse'
    assert questionnaire.target_department == 'TI'


def test_schedule_splits_upcoming_and_active(service):
    pending = service.create_custom_questionnaire(COMPANY, 'Clima Organizacional', title='Pendente')
    running = service.create_custom_questionnaire(COMPANY, 'Satisfação no Trabalho', title='Em andamento')
    service.trigger_questionnaire(running.id, COMPANY)
    service.submit_questionnaire_response(running.id, 'u1', COMPANY, 'RH', answers((1, 9)))

    schedule = service.get_questionnaire_schedule(COMPANY)

    assert [q.id for q in schedule.upcoming] == [pending.id]
    [active] = schedule.active
    assert active.id == running.id
    assert active.response_count == 1


def test_real_time_stats(service):
    questionnaire = service.get_default_questionnaire(COMPANY)
    service.submit_questionnaire_response(questionnaire.id, 'u1', COMPANY, None, answers((1, 3)))
    service.submit_questionnaire_response(questionnaire.id, 'u2', COMPANY, 'TI', answers((1, 2)))

    stats = service.get_real_time_stats(COMPANY, now=datetime(2024, 5, 30, tzinfo=timezone.utc))

    assert stats.total_active == 1
    assert stats.total_responses == 2
    assert stats.pending_responses == 3
    assert stats.response_rate == 40
    assert {d.department: d.responded for d in stats.department_stats} == {'Geral': 1, 'TI': 1}
    assert all(d.sent == 1 for d in stats.department_stats)
    assert stats.last_updated == '2024-05-30T00:00:00+00:00'


def test_responses_filtered_and_newest_first(service, store):
    questionnaire = service.get_default_questionnaire(COMPANY)
    for rid, department, created in [
        ('r1', 'RH', '2024-05-01T10:00:00+00:00'),
        ('r2', 'TI', '2024-05-02T10:00:00+00:00'),
        ('r3', 'RH', '2024-05-03T10:00:00+00:00'),
    ]:
        store.insert(RESPONSES, {
            'id': rid,
            'questionnaire_id': questionnaire.id,
            'user_id': rid,
            'company_id': COMPANY,
            'department': department,
            'responses': [{'question_id': 1, 'answer': 3, 'question_text': 'Estresse'}],
            'completion_status': 'completed',
            'submitted_at': created,
            'created_at': created,
        })

    assert [r.id for r in service.get_questionnaire_responses(COMPANY)] == ['r3', 'r2', 'r1']
    assert [r.id for r in service.get_questionnaire_responses(COMPANY, department='RH')] == ['r3', 'r1']
    assert service.get_questionnaire_responses(COMPANY, questionnaire_id='outro') == []


def test_detailed_responses_through_service(service):
    questionnaire = service.get_default_questionnaire(COMPANY)
    service.submit_questionnaire_response(questionnaire.id, 'u1', COMPANY, 'Sales', answers((1, 3), (9, 8)))
    service.submit_questionnaire_response(questionnaire.id, 'u2', COMPANY, 'Sales', answers((1, 5), (9, 6)))

    stats = service.get_questionnaire_detailed_responses(COMPANY, questionnaire.id)

    assert stats.total_responses == 2
    assert stats.average_score == 5.5
    assert [q.question_id for q in stats.responses_by_question] == [1, 9]
    assert stats.responses_by_question[0].question_text == 'Como você avalia seu nível de estresse no trabalho?'

    with pytest.raises(QuestionnaireNotFound):
        service.get_questionnaire_detailed_responses('outra', questionnaire.id)


def test_analytics_snapshots_newest_period_first(service, store):
    for sid, start in [('s1', '2024-03-01T00:00:00+00:00'), ('s2', '2024-04-01T00:00:00+00:00')]:
        store.insert(ANALYTICS, {
            'id': sid,
            'questionnaire_id': 'q1',
            'company_id': COMPANY,
            'total_responses': 10,
            'completion_rate': 80,
            'average_score': 3.5,
            'department_breakdown': {},
            'response_trends': [],
            'generated_at': start,
            'period_start': start,
            'period_end': start,
        })

    assert [s.id for s in service.get_analytics_snapshots(COMPANY)] == ['s2', 's1']


def test_metrics_with_rows_without_timezone(service, store):
    questionnaire = service.get_default_questionnaire(COMPANY)
    store.insert(RESPONSES, {
        'id': 'r-importada',
        'questionnaire_id': questionnaire.id,
        'user_id': 'u0',
        'company_id': COMPANY,
        'department': 'RH',
        'responses': [{'question_id': 1, 'answer': 2, 'question_text': 'Estresse'}],
        'completion_status': 'completed',
        'submitted_at': '2024-05-29T10:00:00',
        'created_at': '2024-05-29T10:00:00',
    })
    service.submit_questionnaire_response(questionnaire.id, 'u1', COMPANY, 'RH', answers((1, 4)))

    result = service.compute_company_questionnaire_metrics(now=NOW)

    assert result.ok
    assert result.metrics.total_responses == 2
    assert result.metrics.responses_by_department[0].average_score == 3
