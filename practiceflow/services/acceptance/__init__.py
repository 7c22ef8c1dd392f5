"""Client acceptance questionnaire, risk scoring and workflow."""

from .questionnaire import CLIENT_ACCEPTANCE, all_questions, get_questionnaire
from .risk import calculate_risk_assessment, get_risk_rating

__all__ = ["CLIENT_ACCEPTANCE", "all_questions", "calculate_risk_assessment", "get_questionnaire", "get_risk_rating"]
