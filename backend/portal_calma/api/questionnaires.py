"""
API de questionários da empresa
Métricas do painel, estatísticas detalhadas e gestão de questionários e respostas
"""
import logging
import threading
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from portal_calma.models.questionnaire import (
    CustomQuestionnaireRequest,
    QuestionnaireCreateRequest,
    ResponseSubmitRequest,
    StatusUpdateRequest,
    TriggerRequest,
)
from portal_calma.utils.auth import create_tenant_resolver
from portal_calma.utils.errors import (
    FetchFailure,
    MalformedAnswer,
    QuestionnaireError,
    QuestionnaireNotFound,
    TenantResolutionFailure,
)
from portal_calma.utils.questionnaire_service import QuestionnaireService
from portal_calma.utils.row_store import create_row_store

router = APIRouter()
logger = logging.getLogger(__name__)

_service: Optional[QuestionnaireService] = None
_service_lock = threading.Lock()


def get_service() -> QuestionnaireService:
    """Serviço compartilhado (uma conexão com o banco por processo)"""
    global _service
    if _service is None:
        # rotas síncronas rodam no threadpool: cria uma única vez
        with _service_lock:
            if _service is None:
                store = create_row_store()
                _service = QuestionnaireService(store, create_tenant_resolver(store))
    return _service


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith('bearer '):
        return authorization[7:].strip() or None
    return None


class Session:
    """Credenciais da requisição"""

    def __init__(self, access_token: Optional[str], company_id: Optional[str]):
        self.access_token = access_token
        self.company_id = company_id


def get_session(
    authorization: Optional[str] = Header(None),
    x_company_id: Optional[str] = Header(None),
) -> Session:
    return Session(_bearer_token(authorization), x_company_id)


def get_company_id(
    session: Session = Depends(get_session),
    service: QuestionnaireService = Depends(get_service),
) -> str:
    try:
        return service.resolve_company_id(session.access_token, session.company_id)
    except TenantResolutionFailure as e:
        raise HTTPException(status_code=401, detail=f'Empresa não identificada: {e}')


def _to_http(exc: QuestionnaireError) -> HTTPException:
    if isinstance(exc, QuestionnaireNotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, MalformedAnswer):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, TenantResolutionFailure):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, FetchFailure):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def _dump(model) -> dict:
    return model.model_dump(mode='json', by_alias=True)


# ========== Métricas ==========

@router.get("/metrics")
def get_company_metrics(
    session: Session = Depends(get_session),
    service: QuestionnaireService = Depends(get_service),
):
    """
    Métricas de questionários da empresa

    Nunca falha: em caso de erro devolve success=false, o motivo e as métricas zeradas.
    """
    result = service.compute_company_questionnaire_metrics(session.access_token, session.company_id)
    return {
        'success': result.ok,
        'error': result.error,
        'malformedAnswers': result.malformed_answers,
        'metrics': _dump(result.metrics),
    }


@router.get("/realtime-stats")
def get_realtime_stats(
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        return _dump(service.get_real_time_stats(company_id))
    except QuestionnaireError as e:
        raise _to_http(e)


@router.get("/schedule")
def get_schedule(
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        return _dump(service.get_questionnaire_schedule(company_id))
    except QuestionnaireError as e:
        raise _to_http(e)


@router.get("/analytics/snapshots")
def list_analytics_snapshots(
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        snapshots = service.get_analytics_snapshots(company_id)
    except QuestionnaireError as e:
        raise _to_http(e)
    return {
        'success': True,
        'snapshots': [s.model_dump(mode='json') for s in snapshots],
        'total': len(snapshots),
    }


# ========== Modelos ==========

@router.get("/templates")
def list_templates(service: QuestionnaireService = Depends(get_service)):
    templates = service.get_custom_questionnaire_templates()
    return {
        'success': True,
        'templates': [t.model_dump() for t in templates],
    }


@router.post("/templates/questionnaire")
def create_from_template(
    request: CustomQuestionnaireRequest,
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    """Cria um questionário a partir de um modelo"""
    try:
        questionnaire = service.create_custom_questionnaire(
            company_id,
            request.template_name,
            title=request.title,
            description=request.description,
            target_department=request.target_department,
        )
    except QuestionnaireError as e:
        raise _to_http(e)
    return {
        'success': True,
        'message': 'Questionário criado com sucesso',
        'questionnaire': questionnaire.model_dump(mode='json'),
    }


@router.get("/default")
def get_default_questionnaire(
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        return service.get_default_questionnaire(company_id).model_dump(mode='json')
    except QuestionnaireError as e:
        raise _to_http(e)


# ========== Questionários ==========

@router.get("")
def list_questionnaires(
    active_only: bool = Query(False),
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        if active_only:
            questionnaires = service.get_active_questionnaires(company_id)
        else:
            questionnaires = service.get_all_company_questionnaires(company_id)
    except QuestionnaireError as e:
        raise _to_http(e)
    return {
        'success': True,
        'questionnaires': [q.model_dump(mode='json') for q in questionnaires],
    }


@router.post("")
def create_questionnaire(
    request: QuestionnaireCreateRequest,
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        questionnaire = service.create_questionnaire(company_id, request)
    except QuestionnaireError as e:
        raise _to_http(e)
    return {
        'success': True,
        'message': 'Questionário criado com sucesso',
        'questionnaire_id': questionnaire.id,
    }


@router.get("/responses")
def list_responses(
    questionnaire_id: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        responses = service.get_questionnaire_responses(company_id, questionnaire_id, department)
    except QuestionnaireError as e:
        raise _to_http(e)
    return {
        'success': True,
        'responses': [r.model_dump(mode='json') for r in responses],
        'total': len(responses),
    }


@router.get("/{questionnaire_id}")
def get_questionnaire(
    questionnaire_id: str,
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    questionnaire = service.get_questionnaire_by_id(questionnaire_id)
    if questionnaire is None or questionnaire.company_id != company_id:
        raise HTTPException(status_code=404, detail='Questionário não encontrado')
    return questionnaire.model_dump(mode='json')


@router.get("/{questionnaire_id}/statistics")
def get_questionnaire_statistics(
    questionnaire_id: str,
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    """Estatísticas detalhadas por pergunta, departamento e dia"""
    try:
        stats = service.get_questionnaire_detailed_responses(company_id, questionnaire_id)
    except QuestionnaireError as e:
        raise _to_http(e)
    except Exception as e:
        logger.exception('Erro nas estatísticas detalhadas: questionnaire=%s', questionnaire_id)
        raise HTTPException(status_code=500, detail=f'Falha ao calcular estatísticas: {str(e)}')
    return {
        'success': True,
        'statistics': _dump(stats),
    }


@router.post("/{questionnaire_id}/responses")
def submit_response(
    questionnaire_id: str,
    request: ResponseSubmitRequest,
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        response = service.submit_questionnaire_response(
            questionnaire_id,
            request.user_id,
            company_id,
            request.department,
            request.responses,
        )
    except QuestionnaireError as e:
        raise _to_http(e)
    return {
        'success': True,
        'message': 'Resposta enviada',
        'response_id': response.id,
    }


@router.patch("/{questionnaire_id}/status")
def update_status(
    questionnaire_id: str,
    request: StatusUpdateRequest,
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        service.get_owned_questionnaire(company_id, questionnaire_id)
        questionnaire = service.update_questionnaire_status(questionnaire_id, request.status)
    except QuestionnaireError as e:
        raise _to_http(e)
    return {
        'success': True,
        'status': questionnaire.status,
    }


@router.post("/{questionnaire_id}/trigger")
def trigger(
    questionnaire_id: str,
    request: TriggerRequest,
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        questionnaire = service.trigger_questionnaire(questionnaire_id, company_id, request.target_departments)
    except QuestionnaireError as e:
        raise _to_http(e)
    return {
        'success': True,
        'message': 'Questionário disparado',
        'questionnaire': questionnaire.model_dump(mode='json'),
    }


@router.delete("/{questionnaire_id}")
def delete_questionnaire(
    questionnaire_id: str,
    company_id: str = Depends(get_company_id),
    service: QuestionnaireService = Depends(get_service),
):
    try:
        service.get_owned_questionnaire(company_id, questionnaire_id)
        service.delete_questionnaire(questionnaire_id)
    except QuestionnaireError as e:
        raise _to_http(e)
    return {
        'success': True,
        'message': 'Questionário excluído',
    }
