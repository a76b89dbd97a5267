"""
Testes das estatísticas detalhadas por pergunta
"""
import math
from datetime import datetime

import pytest

from conftest import make_questionnaire, make_response
from portal_calma.utils.detailed_statistics import (
    calculate_detailed_statistics,
    first_mode,
    lower_median,
    population_std,
    score_distribution,
)


def test_lower_median_does_not_interpolate():
    assert lower_median([4, 1, 3, 2]) == 3
    assert lower_median([5, 1, 3]) == 3
    assert lower_median([7]) == 7


def test_mode_tie_goes_to_first_seen_value():
    assert first_mode([4, 2, 2, 4]) == 4
    assert first_mode([1, 2, 3]) == 1
    assert first_mode([3, 5, 5]) == 5


def test_population_standard_deviation():
    values = [1, 2, 3, 4]
    mean = sum(values) / len(values)
    expected = math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))
    assert population_std(values) == pytest.approx(expected)
    assert population_std([5]) == 0


def test_score_distribution_sorted_by_value():
    assert score_distribution([4, 2, 2, 4, 5]) == {'2': 2, '4': 2, '5': 1}
    assert score_distribution([3.0, 3]) == {'3': 2}


def test_detailed_statistics():
    questionnaire = make_questionnaire('q1')
    responses = [
        make_response('r1', [(1, 1), (9, 8)], department='Vendas', created_at=datetime(2024, 5, 28, 9, 0)),
        make_response('r2', [(1, 2), (9, 6)], department='Vendas', created_at=datetime(2024, 5, 29, 9, 0)),
        make_response('r3', [(1, 3)], department='TI', status='partial', created_at=datetime(2024, 5, 28, 15, 0)),
        make_response('r4', [(1, 4), (4, 'texto')], department=None, created_at=datetime(2024, 5, 29, 16, 0)),
    ]

    stats = calculate_detailed_statistics(responses, questionnaire)

    assert stats.total_responses == 4
    assert stats.average_score == pytest.approx((4.5 + 4 + 3 + 4) / 4)

    q1, q9 = stats.responses_by_question
    assert (q1.question_id, q1.question_text) == (1, 'Estresse')
    assert q1.responses == [1, 2, 3, 4]
    assert q1.average_score == 2.5
    assert q1.median_score == 3
    assert q1.mode_score == 1
    assert q1.standard_deviation == pytest.approx(math.sqrt(1.25))
    assert q1.score_distribution == {'1': 1, '2': 1, '3': 1, '4': 1}

    assert (q9.question_id, q9.question_text) == (9, 'Bem-estar geral')
    assert q9.average_score == 7
    assert q9.median_score == 8
    assert q9.mode_score == 8
    assert q9.standard_deviation == pytest.approx(1.0)

    breakdown = {d.department: d for d in stats.department_breakdown}
    assert breakdown['Vendas'].total_responses == 2
    assert breakdown['Vendas'].average_score == pytest.approx(4.25)
    assert breakdown['TI'].average_score == 3
    assert breakdown['Não Informado'].average_score == 4

    assert [(p.date, p.responses) for p in stats.response_timeline] == [
        ('2024-05-28', 2),
        ('2024-05-29', 2),
    ]


def test_question_text_falls_back_to_answer_text():
    stats = calculate_detailed_statistics([make_response('r1', [(7, 3)])])
    [question] = stats.responses_by_question
    assert question.question_text == 'Pergunta 7'


def test_no_responses_returns_zeroed_structure():
    stats = calculate_detailed_statistics([], make_questionnaire('q1'))
    assert stats.model_dump(by_alias=True) == {
        'totalResponses': 0,
        'averageScore': 0,
        'responsesByQuestion': [],
        'departmentBreakdown': [],
        'responseTimeline': [],
    }


def test_text_only_responses_do_not_break_statistics():
    stats = calculate_detailed_statistics([make_response('r1', [(4, 'mais pausas')], department='RH')])
    assert stats.total_responses == 1
    assert stats.average_score == 0
    assert stats.responses_by_question == []
    [rh] = stats.department_breakdown
    assert (rh.department, rh.total_responses, rh.average_score) == ('RH', 1, 0)
