"""
Serviço de questionários da empresa
Consulta as tabelas, monta as métricas do painel e gerencia questionários e respostas
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from portal_calma import config
from portal_calma.models.questionnaire import (
    ActiveQuestionnaire,
    AnalyticsSnapshot,
    CustomQuestionnaireTemplate,
    DepartmentStat,
    DetailedStatistics,
    MetricsResult,
    Question,
    Questionnaire,
    QuestionnaireCreateRequest,
    QuestionnaireMetrics,
    QuestionnaireResponse,
    QuestionnaireSchedule,
    RealTimeStats,
    ResponseAnswer,
    ScheduledQuestionnaire,
)
from portal_calma.utils.auth import TenantResolver
from portal_calma.utils.detailed_statistics import calculate_detailed_statistics
from portal_calma.utils.errors import (
    FetchFailure,
    MalformedAnswer,
    QuestionnaireNotFound,
    TenantResolutionFailure,
)
from portal_calma.utils.questionnaire_analyzer import (
    build_questionnaire_metrics,
    count_malformed_answers,
    format_display_date,
    get_empty_metrics,
    safe_rate,
)
from portal_calma.utils.row_store import ANALYTICS, QUESTIONNAIRES, RESPONSES, RowStore
from portal_calma.utils.templates import (
    DEFAULT_DESCRIPTION,
    DEFAULT_QUESTIONS,
    QUESTIONNAIRE_TEMPLATES,
    find_template,
)

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_rows(model: Type[M], rows: List[dict]) -> List[M]:
    """Converte linhas em modelos, descartando (com aviso) as que não validam"""
    parsed = []
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as exc:
            logger.warning('Linha inválida descartada: model=%s id=%s error=%s',
                           model.__name__, row.get('id'), exc.errors()[:1])
    return parsed


class QuestionnaireService:
    """Operações de questionários de uma empresa sobre um RowStore"""

    def __init__(self, store: RowStore, resolver: TenantResolver):
        self.store = store
        self.resolver = resolver

    # ========== Consultas ==========

    def resolve_company_id(self, access_token: Optional[str] = None, company_id: Optional[str] = None) -> str:
        return self.resolver.resolve(access_token=access_token, fallback_company_id=company_id)

    def _questionnaires(self, company_id: str, status: Optional[str] = None,
                        newest_first: bool = False) -> List[Questionnaire]:
        filters = {'company_id': company_id}
        if status:
            filters['status'] = status
        rows = self.store.select(QUESTIONNAIRES, filters,
                                 order_by='created_at' if newest_first else None, descending=newest_first)
        return _parse_rows(Questionnaire, rows)

    def _responses(self, company_id: str, questionnaire_id: Optional[str] = None,
                   department: Optional[str] = None, newest_first: bool = False) -> List[QuestionnaireResponse]:
        filters = {'company_id': company_id}
        if questionnaire_id:
            filters['questionnaire_id'] = questionnaire_id
        if department:
            filters['department'] = department
        rows = self.store.select(RESPONSES, filters,
                                 order_by='created_at' if newest_first else None, descending=newest_first)
        return _parse_rows(QuestionnaireResponse, rows)

    # ========== Métricas ==========

    def compute_company_questionnaire_metrics(
        self,
        access_token: Optional[str] = None,
        company_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> MetricsResult:
        """
        Métricas de questionários da empresa da sessão.

        Falhas de identificação ou de consulta não levantam exceção: o
        resultado vem com ok=False, o motivo em error e as métricas zeradas.
        """
        try:
            valid_company_id = self.resolve_company_id(access_token, company_id)
        except TenantResolutionFailure as exc:
            logger.error('Nenhum company_id válido: %s', exc)
            return MetricsResult(ok=False, metrics=get_empty_metrics(), error='tenant_resolution_failure')

        logger.info('Calculando métricas de questionários: company_id=%s', valid_company_id)

        try:
            questionnaires = self._questionnaires(valid_company_id)
            responses = self._responses(valid_company_id)
        except FetchFailure as exc:
            logger.error('Erro ao consultar questionários: company_id=%s error=%s', valid_company_id, exc)
            return MetricsResult(ok=False, metrics=get_empty_metrics(), error='fetch_failure')

        try:
            metrics = build_questionnaire_metrics(questionnaires, responses, now)
        except Exception as exc:
            logger.exception('Erro ao calcular métricas: company_id=%s error=%s', valid_company_id, exc)
            return MetricsResult(ok=False, metrics=get_empty_metrics(), error='internal_error')

        malformed = count_malformed_answers(questionnaires, responses)
        return MetricsResult(ok=True, metrics=metrics, malformed_answers=malformed)

    def get_company_questionnaire_metrics(
        self,
        access_token: Optional[str] = None,
        company_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> QuestionnaireMetrics:
        """Mesmo que compute_company_questionnaire_metrics, mas só as métricas (zeradas em caso de falha)"""
        return self.compute_company_questionnaire_metrics(access_token, company_id, now).metrics

    def get_questionnaire_detailed_responses(self, company_id: str, questionnaire_id: str) -> DetailedStatistics:
        questionnaire = self.get_owned_questionnaire(company_id, questionnaire_id)
        responses = self._responses(company_id, questionnaire_id=questionnaire_id)
        logger.info('Estatísticas detalhadas: questionnaire=%s respostas=%s', questionnaire_id, len(responses))
        return calculate_detailed_statistics(responses, questionnaire)

    def get_analytics_snapshots(self, company_id: str) -> List[AnalyticsSnapshot]:
        rows = self.store.select(ANALYTICS, {'company_id': company_id}, order_by='period_start', descending=True)
        return _parse_rows(AnalyticsSnapshot, rows)

    # ========== Questionários ==========

    def get_questionnaire_by_id(self, questionnaire_id: str) -> Optional[Questionnaire]:
        row = self.store.get(QUESTIONNAIRES, questionnaire_id)
        if row is None:
            return None
        return Questionnaire.model_validate(row)

    def get_owned_questionnaire(self, company_id: str, questionnaire_id: str) -> Questionnaire:
        questionnaire = self.get_questionnaire_by_id(questionnaire_id)
        if questionnaire is None or questionnaire.company_id != company_id:
            raise QuestionnaireNotFound(questionnaire_id)
        return questionnaire

    def create_questionnaire(self, company_id: str, request: QuestionnaireCreateRequest,
                             created_by: Optional[str] = None) -> Questionnaire:
        now = _utcnow()
        questionnaire = Questionnaire(
            id=str(uuid.uuid4()),
            company_id=company_id,
            title=request.title,
            description=request.description,
            questions=request.questions,
            target_department=request.target_department,
            status=request.status,
            created_at=now,
            updated_at=now,
            created_by=created_by or company_id,
            start_date=request.start_date,
            end_date=request.end_date,
            notification_sent=request.notification_sent,
            anonymous=request.anonymous,
        )
        row = self.store.insert(QUESTIONNAIRES, questionnaire.model_dump(mode='json'))
        logger.info('Questionário criado: id=%s company_id=%s perguntas=%s',
                    questionnaire.id, company_id, len(questionnaire.questions))
        return Questionnaire.model_validate(row)

    def get_all_company_questionnaires(self, company_id: str) -> List[Questionnaire]:
        return self._questionnaires(company_id, newest_first=True)

    def get_active_questionnaires(self, company_id: str) -> List[Questionnaire]:
        return self._questionnaires(company_id, status='active', newest_first=True)

    def get_default_questionnaire(self, company_id: str) -> Questionnaire:
        """Retorna o questionário padrão de bem-estar da empresa, criando-o se necessário"""
        rows = self.store.select(QUESTIONNAIRES, {
            'company_id': company_id,
            'title': config.DEFAULT_QUESTIONNAIRE_TITLE,
        })
        existing = _parse_rows(Questionnaire, rows)
        if existing:
            return existing[0]

        request = QuestionnaireCreateRequest(
            title=config.DEFAULT_QUESTIONNAIRE_TITLE,
            description=DEFAULT_DESCRIPTION,
            questions=[q.model_copy() for q in DEFAULT_QUESTIONS],
            status='active',
        )
        return self.create_questionnaire(company_id, request)

    def get_custom_questionnaire_templates(self) -> List[CustomQuestionnaireTemplate]:
        return list(QUESTIONNAIRE_TEMPLATES)

    def create_custom_questionnaire(
        self,
        company_id: str,
        template_name: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        target_department: Optional[str] = None,
    ) -> Questionnaire:
        template = find_template(template_name)
        if template is None:
            raise QuestionnaireNotFound(template_name)

        request = QuestionnaireCreateRequest(
            title=title or f'{template.name} - {format_display_date(_utcnow())}',
            description=description or template.description,
            questions=[Question.model_validate(q.model_dump()) for q in template.questions],
            target_department=target_department,
            status='inactive',
        )
        logger.info('Criando questionário a partir do modelo %s (%s)', template.name, template.category)
        return self.create_questionnaire(company_id, request)

    def update_questionnaire_status(self, questionnaire_id: str, status: str) -> Questionnaire:
        row = self.store.update(QUESTIONNAIRES, questionnaire_id, {
            'status': status,
            'updated_at': _utcnow().isoformat(),
        })
        if row is None:
            raise QuestionnaireNotFound(questionnaire_id)
        return Questionnaire.model_validate(row)

    def trigger_questionnaire(self, questionnaire_id: str, company_id: str,
                              target_departments: Optional[List[str]] = None) -> Questionnaire:
        """Ativa o questionário e marca a notificação como enviada"""
        self.get_owned_questionnaire(company_id, questionnaire_id)
        now = _utcnow()
        row = self.store.update(QUESTIONNAIRES, questionnaire_id, {
            'notification_sent': True,
            'updated_at': now.isoformat(),
            'status': 'active',
        })
        if row is None:
            raise QuestionnaireNotFound(questionnaire_id)
        logger.info('Questionário %s disparado para a empresa %s: departamentos=%s timestamp=%s',
                    questionnaire_id, company_id, target_departments, now.isoformat())
        return Questionnaire.model_validate(row)

    def delete_questionnaire(self, questionnaire_id: str):
        """Exclui o questionário e, antes, todas as suas respostas"""
        if self.store.get(QUESTIONNAIRES, questionnaire_id) is None:
            raise QuestionnaireNotFound(questionnaire_id)
        self.store.delete(RESPONSES, {'questionnaire_id': questionnaire_id})
        self.store.delete(QUESTIONNAIRES, {'id': questionnaire_id})
        logger.info('Questionário excluído: id=%s', questionnaire_id)

    # ========== Respostas ==========

    def submit_questionnaire_response(
        self,
        questionnaire_id: str,
        user_id: str,
        company_id: str,
        department: Optional[str],
        answers: List[ResponseAnswer],
    ) -> QuestionnaireResponse:
        questionnaire = self.get_owned_questionnaire(company_id, questionnaire_id)

        unknown = [a.question_id for a in answers if a.question_id not in questionnaire.question_ids()]
        if unknown:
            raise MalformedAnswer(questionnaire_id, unknown)

        now = _utcnow()
        response = QuestionnaireResponse(
            id=str(uuid.uuid4()),
            questionnaire_id=questionnaire_id,
            user_id=user_id,
            company_id=company_id,
            department=department,
            responses=answers,
            completion_status='completed',
            submitted_at=now,
            created_at=now,
        )
        row = self.store.insert(RESPONSES, response.model_dump(mode='json'))
        return QuestionnaireResponse.model_validate(row)

    def get_questionnaire_responses(self, company_id: str, questionnaire_id: Optional[str] = None,
                                    department: Optional[str] = None) -> List[QuestionnaireResponse]:
        responses = self._responses(company_id, questionnaire_id, department, newest_first=True)
        logger.info('Respostas encontradas: company_id=%s questionnaire=%s department=%s total=%s',
                    company_id, questionnaire_id, department, len(responses))
        return responses

    # ========== Acompanhamento ==========

    def get_real_time_stats(self, company_id: str, now: Optional[datetime] = None) -> RealTimeStats:
        """
        Estatísticas em tempo real.

        As respostas esperadas são estimadas em ESTIMATED_DEPARTMENTS_PER_QUESTIONNAIRE
        por questionário ativo.
        """
        active = self._questionnaires(company_id, status='active')
        responses = self._responses(company_id)

        total_active = len(active)
        expected = total_active * config.ESTIMATED_DEPARTMENTS_PER_QUESTIONNAIRE

        responded = {}
        for response in responses:
            department = (response.department or '').strip() or config.REALTIME_DEFAULT_DEPARTMENT
            responded[department] = responded.get(department, 0) + 1

        return RealTimeStats(
            total_active=total_active,
            total_responses=len(responses),
            pending_responses=max(0, expected - len(responses)),
            response_rate=safe_rate(len(responses), expected),
            department_stats=[
                DepartmentStat(
                    department=department,
                    sent=total_active,
                    responded=count,
                    response_rate=safe_rate(count, total_active),
                )
                for department, count in responded.items()
            ],
            last_updated=(now or _utcnow()).isoformat(),
        )

    def get_questionnaire_schedule(self, company_id: str) -> QuestionnaireSchedule:
        questionnaires = self._questionnaires(company_id, newest_first=True)
        counts = {}
        for row in self.store.select(RESPONSES, {'company_id': company_id}):
            counts[row.get('questionnaire_id')] = counts.get(row.get('questionnaire_id'), 0) + 1

        upcoming = [
            ScheduledQuestionnaire(
                id=q.id,
                title=q.title,
                scheduled_date=(q.start_date or q.created_at).isoformat(),
                target_department=q.target_department,
                status=q.status,
            )
            for q in questionnaires
            if q.status == 'inactive' or not q.notification_sent
        ]
        active = [
            ActiveQuestionnaire(
                id=q.id,
                title=q.title,
                start_date=(q.start_date or q.created_at).isoformat(),
                end_date=q.end_date.isoformat() if q.end_date else None,
                response_count=counts.get(q.id, 0),
                target_department=q.target_department,
            )
            for q in questionnaires
            if q.status == 'active' and q.notification_sent
        ]
        return QuestionnaireSchedule(upcoming=upcoming, active=active)
