"""
Modelos de dados dos questionários de bem-estar
"""
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Literal, Optional, Union
from datetime import datetime, timezone

SemanticTag = Literal['stress', 'satisfaction', 'worklife', 'wellbeing', 'untagged']
QuestionnaireStatus = Literal['inactive', 'active', 'completed']


class Question(BaseModel):
    """Pergunta do questionário"""
    id: int
    question: str
    type: str = 'scale'  # scale, text, multiple_choice
    scale_min: Optional[int] = None
    scale_max: Optional[int] = None
    scale_labels: Optional[List[str]] = None
    required: bool = True
    placeholder: Optional[str] = None
    options: Optional[List[str]] = None
    semantic_tag: SemanticTag = 'untagged'


def check_scale_question(question: Question):
    """Valida limites e rótulos de uma pergunta de escala"""
    if question.type != 'scale':
        return
    if question.scale_min is None or question.scale_max is None:
        raise ValueError(f"Pergunta {question.id}: escala sem scale_min/scale_max")
    if question.scale_max <= question.scale_min:
        raise ValueError(f"Pergunta {question.id}: scale_max deve ser maior que scale_min")
    if question.scale_labels is not None:
        expected = question.scale_max - question.scale_min + 1
        if len(question.scale_labels) != expected:
            raise ValueError(
                f"Pergunta {question.id}: esperados {expected} rótulos, recebidos {len(question.scale_labels)}"
            )


class Questionnaire(BaseModel):
    """Questionário de uma empresa"""
    id: str
    company_id: str
    title: str
    description: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    target_department: Optional[str] = None
    status: str = 'inactive'
    created_at: datetime
    updated_at: datetime
    created_by: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    notification_sent: bool = False
    anonymous: bool = False

    @field_validator('questions', mode='before')
    @classmethod
    def coerce_questions(cls, value):
        # coluna JSON pode vir com qualquer formato
        return value if isinstance(value, list) else []

    def question_ids(self) -> set:
        return {q.id for q in self.questions}


class ResponseAnswer(BaseModel):
    """Resposta a uma pergunta"""
    question_id: int
    # bool antes dos números: true não pode virar 1
    answer: Union[StrictBool, StrictInt, StrictFloat, str, None] = None
    question_text: str = ''


class QuestionnaireResponse(BaseModel):
    """Resposta de um colaborador a um questionário"""
    id: str
    questionnaire_id: str
    user_id: str
    company_id: str
    department: Optional[str] = None
    responses: List[ResponseAnswer] = Field(default_factory=list)
    completion_status: str = 'completed'
    submitted_at: Optional[datetime] = None
    created_at: datetime

    @field_validator('responses', mode='before')
    @classmethod
    def coerce_responses(cls, value):
        return value if isinstance(value, list) else []

    @field_validator('submitted_at', 'created_at')
    @classmethod
    def assume_utc(cls, value):
        # linhas antigas sem fuso são tratadas como UTC, mantendo a data armazenada
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class AnalyticsSnapshot(BaseModel):
    """Snapshot pré-calculado da tabela questionnaire_analytics"""
    id: str
    questionnaire_id: str
    company_id: str
    total_responses: int = 0
    completion_rate: float = 0
    average_score: Optional[float] = None
    department_breakdown: Any = None
    response_trends: Any = None
    generated_at: Optional[datetime] = None
    period_start: datetime
    period_end: datetime


# ========== Requisições ==========

class QuestionnaireCreateRequest(BaseModel):
    """Criação de questionário"""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    questions: List[Question]
    target_department: Optional[str] = None
    status: QuestionnaireStatus = 'inactive'
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    notification_sent: bool = False
    anonymous: bool = False

    @model_validator(mode='after')
    def check_questions(self):
        ids = [q.id for q in self.questions]
        if len(ids) != len(set(ids)):
            raise ValueError("IDs de pergunta devem ser únicos no questionário")
        for question in self.questions:
            check_scale_question(question)
        return self


class ResponseSubmitRequest(BaseModel):
    """Envio de respostas"""
    user_id: str
    department: Optional[str] = None
    responses: List[ResponseAnswer]


class StatusUpdateRequest(BaseModel):
    status: QuestionnaireStatus


class TriggerRequest(BaseModel):
    target_departments: Optional[List[str]] = None


class CustomQuestionnaireRequest(BaseModel):
    """Criação a partir de um modelo"""
    template_name: str
    title: Optional[str] = None
    description: Optional[str] = None
    target_department: Optional[str] = None


class CustomQuestionnaireTemplate(BaseModel):
    name: str
    description: str
    category: str
    questions: List[Question]


# ========== Agregados (saída JSON em camelCase) ==========

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DepartmentResponseData(CamelModel):
    department: str
    total_sent: int
    total_completed: int
    completion_rate: float
    average_score: float


class ResponseEvolutionData(CamelModel):
    date: str
    responses: int
    completion_rate: float


class QuestionnairePerformanceData(CamelModel):
    questionnaire: str
    total_responses: int
    completion_rate: float
    average_score: float
    last_response: str


class DepartmentSatisfactionData(CamelModel):
    department: str
    wellbeing_score: float
    stress_level: float
    work_satisfaction: float
    work_life_balance: float


class QuestionnaireMetrics(CamelModel):
    total_questionnaires: int = 0
    active_questionnaires: int = 0
    total_responses: int = 0
    average_completion_rate: float = 0
    responses_by_department: List[DepartmentResponseData] = Field(default_factory=list)
    response_evolution: List[ResponseEvolutionData] = Field(default_factory=list)
    questionnaire_performance: List[QuestionnairePerformanceData] = Field(default_factory=list)
    department_satisfaction: List[DepartmentSatisfactionData] = Field(default_factory=list)


class MetricsResult(CamelModel):
    """Resultado das métricas: distingue "sem dados" de "falha na consulta" """
    ok: bool
    metrics: QuestionnaireMetrics
    error: Optional[str] = None
    malformed_answers: int = 0


class QuestionStatistics(CamelModel):
    question_id: int
    question_text: str
    responses: List[Union[int, float]]
    average_score: float
    median_score: Union[int, float]
    mode_score: Union[int, float]
    standard_deviation: float
    score_distribution: Dict[str, int]


class DepartmentBreakdown(CamelModel):
    department: str
    total_responses: int
    average_score: float


class TimelinePoint(CamelModel):
    date: str
    responses: int


class DetailedStatistics(CamelModel):
    total_responses: int = 0
    average_score: float = 0
    responses_by_question: List[QuestionStatistics] = Field(default_factory=list)
    department_breakdown: List[DepartmentBreakdown] = Field(default_factory=list)
    response_timeline: List[TimelinePoint] = Field(default_factory=list)


class DepartmentStat(CamelModel):
    department: str
    sent: int
    responded: int
    response_rate: float


class RealTimeStats(CamelModel):
    total_active: int = 0
    total_responses: int = 0
    pending_responses: int = 0
    response_rate: float = 0
    department_stats: List[DepartmentStat] = Field(default_factory=list)
    last_updated: str


class ScheduledQuestionnaire(CamelModel):
    id: str
    title: str
    scheduled_date: str
    target_department: Optional[str] = None
    status: str


class ActiveQuestionnaire(CamelModel):
    id: str
    title: str
    start_date: str
    end_date: Optional[str] = None
    response_count: int
    target_department: Optional[str] = None


class QuestionnaireSchedule(CamelModel):
    upcoming: List[ScheduledQuestionnaire] = Field(default_factory=list)
    active: List[ActiveQuestionnaire] = Field(default_factory=list)
