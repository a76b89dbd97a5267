"""
Análise das respostas de questionários
Agrupa respostas por departamento, por dia e por questionário e monta as
métricas do painel da empresa
"""
import logging
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from portal_calma import config
from portal_calma.models.questionnaire import (
    DepartmentResponseData,
    DepartmentSatisfactionData,
    Questionnaire,
    QuestionnaireMetrics,
    QuestionnairePerformanceData,
    QuestionnaireResponse,
    ResponseEvolutionData,
)

logger = logging.getLogger(__name__)

COMPLETED = 'completed'

# Mapeamento fixo do questionário padrão (usado quando as perguntas não têm semantic_tag)
LEGACY_CATEGORY_BY_QUESTION_ID = {
    1: 'stress',
    3: 'satisfaction',
    7: 'worklife',
    9: 'wellbeing',
}


# ========== Funções auxiliares ==========

def convert_numpy_types(obj):
    """Converte recursivamente tipos numpy em tipos nativos do Python"""
    if isinstance(obj, dict):
        return {key: convert_numpy_types(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_numpy_types(item) for item in obj]
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    else:
        return obj


def is_numeric_answer(value) -> bool:
    """Apenas números contam para as estatísticas (bool e texto não)"""
    return isinstance(value, (int, float, np.number)) and not isinstance(value, bool)


def numeric_answers(response: QuestionnaireResponse) -> List[float]:
    return [a.answer for a in response.responses if is_numeric_answer(a.answer)]


def response_mean(response: QuestionnaireResponse) -> Optional[float]:
    """Média das respostas numéricas de uma única resposta, None se não houver"""
    values = numeric_answers(response)
    if not values:
        return None
    return sum(values) / len(values)


def safe_mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0


def safe_rate(num: int, den: int) -> float:
    """Percentual seguro (0 quando o denominador é zero)"""
    return (num / den) * 100 if den > 0 else 0


def department_of(response: QuestionnaireResponse) -> str:
    return (response.department or '').strip() or config.UNSPECIFIED_DEPARTMENT


def is_completed(response: QuestionnaireResponse) -> bool:
    return response.completion_status == COMPLETED


# ========== Agrupamento por departamento ==========

def calculate_department_metrics(responses: Iterable[QuestionnaireResponse]) -> List[DepartmentResponseData]:
    """
    Agrupa respostas por departamento

    averageScore é a média das médias de cada resposta concluída, não a média
    de todas as respostas numéricas.
    """
    departments: Dict[str, dict] = {}

    for response in responses:
        data = departments.setdefault(
            department_of(response),
            {'total_sent': 0, 'total_completed': 0, 'scores': []},
        )
        data['total_sent'] += 1

        if is_completed(response):
            data['total_completed'] += 1
            avg = response_mean(response)
            if avg is not None:
                data['scores'].append(avg)

    return [
        DepartmentResponseData(
            department=department,
            total_sent=data['total_sent'],
            total_completed=data['total_completed'],
            completion_rate=safe_rate(data['total_completed'], data['total_sent']),
            average_score=safe_mean(data['scores']),
        )
        for department, data in departments.items()
    ]


# ========== Evolução diária ==========

def evolution_window(now: Optional[datetime] = None, days: int = config.EVOLUTION_WINDOW_DAYS) -> List[str]:
    """Datas (YYYY-MM-DD) da janela que termina hoje, da mais antiga para a mais recente"""
    now = now or datetime.now()
    end = pd.Timestamp(now.date())
    return [day.strftime('%Y-%m-%d') for day in pd.date_range(end=end, periods=days, freq='D')]


def generate_evolution_data(
    responses: Iterable[QuestionnaireResponse],
    now: Optional[datetime] = None,
) -> List[ResponseEvolutionData]:
    """Volume e taxa de conclusão por dia nos últimos 30 dias"""
    totals: Counter = Counter()
    completed: Counter = Counter()
    for response in responses:
        # data como armazenada, sem conversão de fuso
        day = response.created_at.date().isoformat()
        totals[day] += 1
        if is_completed(response):
            completed[day] += 1

    return [
        ResponseEvolutionData(
            date=day,
            responses=totals[day],
            completion_rate=safe_rate(completed[day], totals[day]),
        )
        for day in evolution_window(now)
    ]


# ========== Desempenho por questionário ==========

def format_display_date(value: datetime) -> str:
    return value.strftime(config.DATE_DISPLAY_FORMAT)


def calculate_questionnaire_performance(
    questionnaires: Iterable[Questionnaire],
    responses: Iterable[QuestionnaireResponse],
) -> List[QuestionnairePerformanceData]:
    """Totais, taxa de conclusão, nota média e última resposta de cada questionário"""
    by_questionnaire: Dict[str, List[QuestionnaireResponse]] = {}
    for response in responses:
        by_questionnaire.setdefault(response.questionnaire_id, []).append(response)

    performance = []
    for questionnaire in questionnaires:
        own = by_questionnaire.get(questionnaire.id, [])
        done = [r for r in own if is_completed(r)]
        scores = [avg for avg in (response_mean(r) for r in done) if avg is not None]

        if own:
            last = max(r.submitted_at or r.created_at for r in own)
            last_response = format_display_date(last)
        else:
            last_response = config.NO_RESPONSE_LABEL

        performance.append(QuestionnairePerformanceData(
            questionnaire=questionnaire.title,
            total_responses=len(own),
            completion_rate=safe_rate(len(done), len(own)),
            average_score=safe_mean(scores),
            last_response=last_response,
        ))

    return performance


# ========== Satisfação por departamento ==========

def build_category_index(questionnaires: Optional[Iterable[Questionnaire]]) -> Dict[str, Dict[int, str]]:
    """
    questionnaire_id -> {question_id: categoria}

    Só entram questionários com ao menos uma pergunta marcada; os demais usam
    o mapeamento fixo por ID.
    """
    index = {}
    for questionnaire in questionnaires or []:
        tags = {q.id: q.semantic_tag for q in questionnaire.questions if q.semantic_tag != 'untagged'}
        if tags:
            index[questionnaire.id] = tags
    return index


def calculate_department_satisfaction(
    responses: Iterable[QuestionnaireResponse],
    questionnaires: Optional[Iterable[Questionnaire]] = None,
) -> List[DepartmentSatisfactionData]:
    """Médias de estresse, satisfação, equilíbrio e bem-estar por departamento (só respostas concluídas)"""
    category_index = build_category_index(questionnaires)
    departments: Dict[str, Dict[str, List[float]]] = {}

    for response in responses:
        if not is_completed(response):
            continue
        buckets = departments.setdefault(
            department_of(response),
            {'stress': [], 'satisfaction': [], 'worklife': [], 'wellbeing': []},
        )
        categories = category_index.get(response.questionnaire_id, LEGACY_CATEGORY_BY_QUESTION_ID)

        for answer in response.responses:
            if not is_numeric_answer(answer.answer):
                continue
            category = categories.get(answer.question_id)
            if category in buckets:
                buckets[category].append(answer.answer)

    return [
        DepartmentSatisfactionData(
            department=department,
            wellbeing_score=safe_mean(buckets['wellbeing']),
            stress_level=safe_mean(buckets['stress']),
            work_satisfaction=safe_mean(buckets['satisfaction']),
            work_life_balance=safe_mean(buckets['worklife']),
        )
        for department, buckets in departments.items()
    ]


# ========== Validação ==========

def count_malformed_answers(
    questionnaires: Iterable[Questionnaire],
    responses: Iterable[QuestionnaireResponse],
) -> int:
    """Conta respostas cujo question_id não existe no questionário respondido"""
    known = {q.id: q.question_ids() for q in questionnaires}
    malformed = 0
    for response in responses:
        question_ids = known.get(response.questionnaire_id)
        if question_ids is None:
            # questionário fora do lote consultado
            continue
        bad = [a.question_id for a in response.responses if a.question_id not in question_ids]
        if bad:
            malformed += len(bad)
            logger.warning(
                'Resposta com perguntas inexistentes: response=%s questionnaire=%s question_ids=%s',
                response.id, response.questionnaire_id, bad,
            )
    return malformed


# ========== Métricas consolidadas ==========

def get_empty_metrics() -> QuestionnaireMetrics:
    return QuestionnaireMetrics(
        total_questionnaires=0,
        active_questionnaires=0,
        total_responses=0,
        average_completion_rate=0,
        responses_by_department=[],
        response_evolution=[],
        questionnaire_performance=[],
        department_satisfaction=[],
    )


def build_questionnaire_metrics(
    questionnaires: List[Questionnaire],
    responses: List[QuestionnaireResponse],
    now: Optional[datetime] = None,
) -> QuestionnaireMetrics:
    """Monta as métricas da empresa a partir das linhas já consultadas"""
    completed = sum(1 for r in responses if is_completed(r))

    return QuestionnaireMetrics(
        total_questionnaires=len(questionnaires),
        active_questionnaires=sum(1 for q in questionnaires if q.status == 'active'),
        total_responses=len(responses),
        # taxa global, não a média das taxas por departamento
        average_completion_rate=safe_rate(completed, len(responses)),
        responses_by_department=calculate_department_metrics(responses),
        response_evolution=generate_evolution_data(responses, now),
        questionnaire_performance=calculate_questionnaire_performance(questionnaires, responses),
        department_satisfaction=calculate_department_satisfaction(responses, questionnaires),
    )
