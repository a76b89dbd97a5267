"""Models package"""
from .questionnaire import (
    Question,
    Questionnaire,
    ResponseAnswer,
    QuestionnaireResponse,
    AnalyticsSnapshot,
    QuestionnaireMetrics,
    MetricsResult,
    DetailedStatistics,
)

__all__ = [
    'Question',
    'Questionnaire',
    'ResponseAnswer',
    'QuestionnaireResponse',
    'AnalyticsSnapshot',
    'QuestionnaireMetrics',
    'MetricsResult',
    'DetailedStatistics',
]
