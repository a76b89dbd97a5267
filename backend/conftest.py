"""
Fixtures compartilhadas dos testes
"""
from datetime import datetime

import pytest

from portal_calma.models.questionnaire import Question, Questionnaire, QuestionnaireResponse
from portal_calma.utils.auth import StaticTenantResolver
from portal_calma.utils.questionnaire_service import QuestionnaireService
from portal_calma.utils.row_store import LocalRowStore

COMPANY = 'company-1'
NOW = datetime(2024, 5, 30, 12, 0, 0)


def make_questionnaire(qid='q1', title='Bem-estar', status='active', questions=None, company_id=COMPANY):
    if questions is None:
        questions = [
            Question(id=1, question='Estresse', type='scale', scale_min=1, scale_max=5),
            Question(id=9, question='Bem-estar geral', type='scale', scale_min=1, scale_max=10),
        ]
    return Questionnaire(
        id=qid,
        company_id=company_id,
        title=title,
        questions=questions,
        status=status,
        created_at=datetime(2024, 5, 1),
        updated_at=datetime(2024, 5, 1),
        created_by=company_id,
    )


def make_response(rid, answers, department='Vendas', status='completed', questionnaire_id='q1',
                  created_at=datetime(2024, 5, 29, 10, 0), submitted_at=None):
    return QuestionnaireResponse(
        id=rid,
        questionnaire_id=questionnaire_id,
        user_id=f'user-{rid}',
        company_id=COMPANY,
        department=department,
        responses=[
            {'question_id': question_id, 'answer': answer, 'question_text': f'Pergunta {question_id}'}
            for question_id, answer in answers
        ],
        completion_status=status,
        submitted_at=submitted_at or created_at,
        created_at=created_at,
    )


@pytest.fixture
def store(tmp_path):
    return LocalRowStore(str(tmp_path / 'data'))


@pytest.fixture
def service(store):
    return QuestionnaireService(store, StaticTenantResolver(COMPANY))
