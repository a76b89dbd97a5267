"""
Erros do serviço de questionários
"""


class QuestionnaireError(Exception):
    """Erro base do serviço de questionários"""


class TenantResolutionFailure(QuestionnaireError):
    """Não foi possível identificar a empresa da sessão atual"""


class FetchFailure(QuestionnaireError):
    """A consulta ao banco de dados falhou ou retornou erro"""

    def __init__(self, table: str, detail: str):
        self.table = table
        self.detail = detail
        super().__init__(f"Falha ao consultar '{table}': {detail}")


class QuestionnaireNotFound(QuestionnaireError):
    """Questionário inexistente"""

    def __init__(self, questionnaire_id: str):
        self.questionnaire_id = questionnaire_id
        super().__init__(f"Questionário não encontrado: {questionnaire_id}")


class MalformedAnswer(QuestionnaireError):
    """Resposta referencia uma pergunta que não existe no questionário"""

    def __init__(self, questionnaire_id: str, question_ids):
        self.questionnaire_id = questionnaire_id
        self.question_ids = sorted(set(question_ids))
        super().__init__(
            f"Questionário {questionnaire_id} não possui as perguntas: {self.question_ids}"
        )
