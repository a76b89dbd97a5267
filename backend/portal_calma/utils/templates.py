"""
Questionário padrão de bem-estar e modelos personalizados
"""
from typing import List, Optional

from portal_calma.models.questionnaire import CustomQuestionnaireTemplate, Question

_FIVE_QUALITY = ["Muito ruim", "Ruim", "Regular", "Bom", "Excelente"]
_FREQUENCY = ["Nunca", "Raramente", "Às vezes", "Frequentemente", "Sempre"]


def _ten_point(low: str, high: str) -> List[str]:
    return [f"1 - {low}"] + [str(n) for n in range(2, 10)] + [f"10 - {high}"]


DEFAULT_QUESTIONS = [
    Question(
        id=1,
        question="Como você avalia seu nível de estresse no trabalho?",
        type="scale", scale_min=1, scale_max=5,
        scale_labels=["Muito baixo", "Baixo", "Médio", "Alto", "Muito alto"],
        semantic_tag="stress",
    ),
    Question(
        id=2,
        question="Você se sente motivado em seu trabalho atual?",
        type="scale", scale_min=1, scale_max=5,
        scale_labels=["Nada motivado", "Pouco motivado", "Neutro", "Motivado", "Muito motivado"],
    ),
    Question(
        id=3,
        question="Como você avalia a qualidade do ambiente de trabalho?",
        type="scale", scale_min=1, scale_max=5,
        scale_labels=_FIVE_QUALITY,
        semantic_tag="satisfaction",
    ),
    Question(
        id=4,
        question="Você tem alguma sugestão para melhorar o bem-estar no trabalho?",
        type="text", required=False,
        placeholder="Compartilhe suas ideias...",
    ),
    Question(
        id=5,
        question="Com que frequência você sente sobrecarga de trabalho?",
        type="multiple_choice",
        options=_FREQUENCY,
    ),
    Question(
        id=6,
        question="Você sente que tem autonomia suficiente em suas tarefas?",
        type="scale", scale_min=1, scale_max=5,
        scale_labels=["Nenhuma autonomia", "Pouca", "Moderada", "Boa", "Total autonomia"],
    ),
    Question(
        id=7,
        question="Como você avalia o equilíbrio entre vida pessoal e trabalho?",
        type="scale", scale_min=1, scale_max=5,
        scale_labels=_FIVE_QUALITY,
        semantic_tag="worklife",
    ),
    Question(
        id=8,
        question="Você se sente reconhecido pelo seu trabalho?",
        type="scale", scale_min=1, scale_max=5,
        scale_labels=_FREQUENCY,
    ),
    Question(
        id=9,
        question="Como está seu bem-estar geral no momento?",
        type="scale", scale_min=1, scale_max=10,
        scale_labels=_ten_point("Muito mal", "Excelente"),
        semantic_tag="wellbeing",
    ),
    Question(
        id=10,
        question="O que mais impacta negativamente seu bem-estar no trabalho?",
        type="multiple_choice", required=False,
        options=[
            "Excesso de trabalho",
            "Falta de reconhecimento",
            "Ambiente de trabalho",
            "Relacionamentos interpessoais",
            "Falta de crescimento profissional",
            "Outros",
        ],
    ),
]

DEFAULT_DESCRIPTION = 'Questionário padrão para avaliar o bem-estar e satisfação dos colaboradores'


QUESTIONNAIRE_TEMPLATES = [
    CustomQuestionnaireTemplate(
        name="Satisfação no Trabalho",
        description="Avalia a satisfação geral dos colaboradores com seu trabalho e ambiente",
        category="Satisfação",
        questions=[
            Question(
                id=1,
                question="Como você avalia sua satisfação geral com o trabalho?",
                type="scale", scale_min=1, scale_max=10,
                scale_labels=_ten_point("Muito insatisfeito", "Muito satisfeito"),
                semantic_tag="satisfaction",
            ),
            Question(
                id=2,
                question="Você se sente valorizado pela empresa?",
                type="scale", scale_min=1, scale_max=5,
                scale_labels=_FREQUENCY,
            ),
            Question(
                id=3,
                question="Qual aspecto do trabalho mais contribui para sua satisfação?",
                type="multiple_choice",
                options=[
                    "Reconhecimento e feedback",
                    "Oportunidades de crescimento",
                    "Ambiente de trabalho",
                    "Flexibilidade e autonomia",
                    "Remuneração e benefícios",
                    "Relacionamentos interpessoais",
                ],
            ),
            Question(
                id=4,
                question="O que você mudaria para melhorar sua satisfação no trabalho?",
                type="text", required=False,
                placeholder="Descreva suas sugestões...",
            ),
        ],
    ),
    CustomQuestionnaireTemplate(
        name="Clima Organizacional",
        description="Mede o clima organizacional e relacionamentos interpessoais",
        category="Clima",
        questions=[
            Question(
                id=1,
                question="Como você avalia o clima organizacional da empresa?",
                type="scale", scale_min=1, scale_max=5,
                scale_labels=_FIVE_QUALITY,
                semantic_tag="satisfaction",
            ),
            Question(
                id=2,
                question="Você se sente confortável para expressar suas opiniões?",
                type="scale", scale_min=1, scale_max=5,
                scale_labels=_FREQUENCY,
            ),
            Question(
                id=3,
                question="Como é a comunicação entre as equipes?",
                type="multiple_choice",
                options=["Excelente", "Boa", "Regular", "Ruim", "Muito ruim"],
            ),
            Question(
                id=4,
                question="Você confia na liderança da empresa?",
                type="scale", scale_min=1, scale_max=10,
                scale_labels=_ten_point("Não confio", "Confio plenamente"),
            ),
            Question(
                id=5,
                question="Que mudanças você sugere para melhorar o clima organizacional?",
                type="text", required=False,
                placeholder="Compartilhe suas ideias...",
            ),
        ],
    ),
    CustomQuestionnaireTemplate(
        name="Saúde Mental e Estresse",
        description="Foca especificamente em aspectos de saúde mental e gestão de estresse",
        category="Saúde Mental",
        questions=[
            Question(
                id=1,
                question="Como você avalia seu nível atual de estresse?",
                type="scale", scale_min=1, scale_max=10,
                scale_labels=_ten_point("Sem estresse", "Muito estressado"),
                semantic_tag="stress",
            ),
            Question(
                id=2,
                question="Qual é a principal fonte de estresse no trabalho?",
                type="multiple_choice",
                options=[
                    "Excesso de trabalho",
                    "Prazos apertados",
                    "Pressão da liderança",
                    "Conflitos interpessoais",
                    "Falta de recursos",
                    "Incerteza sobre o futuro",
                    "Outros",
                ],
            ),
            Question(
                id=3,
                question="Você tem acesso a recursos de apoio à saúde mental?",
                type="multiple_choice",
                options=["Sim, e os uso regularmente", "Sim, mas não uso", "Não sei que existem", "Não existem na empresa"],
            ),
            Question(
                id=4,
                question="Como está sua qualidade do sono?",
                type="scale", scale_min=1, scale_max=5,
                scale_labels=["Muito ruim", "Ruim", "Regular", "Boa", "Excelente"],
                semantic_tag="wellbeing",
            ),
            Question(
                id=5,
                question="Que recursos de saúde mental você gostaria que a empresa oferecesse?",
                type="text", required=False,
                placeholder="Descreva os recursos que considera importantes...",
            ),
        ],
    ),
]


def find_template(name: str) -> Optional[CustomQuestionnaireTemplate]:
    for template in QUESTIONNAIRE_TEMPLATES:
        if template.name == name:
            return template
    return None
