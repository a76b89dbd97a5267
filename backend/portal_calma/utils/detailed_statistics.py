"""
Estatísticas detalhadas de um questionário
Por pergunta: média, mediana, moda, desvio padrão e distribuição das notas;
além do recorte por departamento e da linha do tempo de respostas
"""
import logging
from collections import Counter
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from portal_calma.models.questionnaire import (
    DepartmentBreakdown,
    DetailedStatistics,
    Questionnaire,
    QuestionnaireResponse,
    QuestionStatistics,
    TimelinePoint,
)
from portal_calma.utils.questionnaire_analyzer import (
    convert_numpy_types,
    department_of,
    is_numeric_answer,
    response_mean,
)

logger = logging.getLogger(__name__)


def lower_median(values: List[float]):
    """Elemento na posição n // 2 da lista ordenada (sem interpolação)"""
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def first_mode(values: List[float]):
    """Valor mais frequente; no empate vence o que apareceu primeiro"""
    return Counter(values).most_common(1)[0][0]


def population_std(values: List[float]) -> float:
    # variância populacional (divide por n)
    return float(np.std(np.asarray(values, dtype=float), ddof=0))


def distribution_key(value) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def score_distribution(values: List[float]) -> Dict[str, int]:
    counts = Counter(values)
    return {distribution_key(value): counts[value] for value in sorted(counts)}


def describe_question(question_id: int, question_text: str, values: List[float]) -> QuestionStatistics:
    return QuestionStatistics(
        question_id=question_id,
        question_text=question_text,
        responses=convert_numpy_types(list(values)),
        average_score=float(np.mean(values)),
        median_score=convert_numpy_types(lower_median(values)),
        mode_score=convert_numpy_types(first_mode(values)),
        standard_deviation=population_std(values),
        score_distribution=score_distribution(values),
    )


def collect_answers_by_question(responses: List[QuestionnaireResponse]):
    """question_id -> (texto, notas), na ordem em que as perguntas aparecem"""
    collected: Dict[int, dict] = {}
    for response in responses:
        for answer in response.responses:
            if not is_numeric_answer(answer.answer):
                continue
            entry = collected.setdefault(answer.question_id, {'text': answer.question_text, 'values': []})
            entry['values'].append(answer.answer)
    return collected


def build_response_frame(responses: List[QuestionnaireResponse]) -> pd.DataFrame:
    scores = [response_mean(r) for r in responses]
    return pd.DataFrame({
        'department': [department_of(r) for r in responses],
        'score': pd.Series([np.nan if s is None else s for s in scores], dtype='float64'),
        'date': [r.created_at.date().isoformat() for r in responses],
    })


def calculate_detailed_statistics(
    responses: List[QuestionnaireResponse],
    questionnaire: Optional[Questionnaire] = None,
) -> DetailedStatistics:
    """
    Estatísticas detalhadas de um questionário.

    Considera todas as respostas recebidas (concluídas ou parciais). Sem
    respostas, devolve a estrutura zerada.
    """
    if not responses:
        return DetailedStatistics()

    texts = {q.id: q.question for q in questionnaire.questions} if questionnaire else {}

    by_question = [
        describe_question(question_id, texts.get(question_id) or entry['text'], entry['values'])
        for question_id, entry in collect_answers_by_question(responses).items()
    ]

    logger.debug('Estatísticas detalhadas: %s respostas, %s perguntas', len(responses), len(by_question))

    frame = build_response_frame(responses)

    breakdown = (
        frame.groupby('department', sort=False)
        .agg(total_responses=('score', 'size'), average_score=('score', 'mean'))
        .fillna({'average_score': 0})
        .reset_index()
    )
    departments = [
        DepartmentBreakdown(**convert_numpy_types(row))
        for row in breakdown.to_dict(orient='records')
    ]

    timeline_counts = frame['date'].value_counts().sort_index()
    timeline = [
        TimelinePoint(date=day, responses=int(count))
        for day, count in timeline_counts.items()
    ]

    overall = frame['score'].mean()

    return DetailedStatistics(
        total_responses=len(responses),
        average_score=0 if pd.isna(overall) else float(overall),
        responses_by_question=by_question,
        department_breakdown=departments,
        response_timeline=timeline,
    )
