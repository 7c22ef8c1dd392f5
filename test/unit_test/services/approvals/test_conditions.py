"""Unit tests for approval step condition evaluation."""

import pytest

from practiceflow.services.approvals.conditions import evaluate_condition, resolve_path


class TestEvaluateCondition:
    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("context.risk_rating == 'HIGH'", True),
            ("context.risk_rating == 'LOW'", False),
            ("context.risk_rating != 'LOW'", True),
            ("context.risk_score > 60 and context.risk_rating == 'HIGH'", True),
            ("context.risk_score < 60 or context.client_code == 'CL001'", True),
            ("not context.is_group", True),
            ("context.risk_rating in ['MEDIUM', 'HIGH']", True),
            ("context['client_code'] == 'CL001'", True),
            ("context.owner.code == 'P001'", True),
            ("risk_rating == 'HIGH'", True),
        ],
    )
    def test_python_syntax(self, expression, expected):
        context = {
            "risk_rating": "HIGH",
            "risk_score": 72,
            "client_code": "CL001",
            "is_group": False,
            "owner": {"code": "P001"},
        }
        assert evaluate_condition(expression, context) is expected

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("context.risk_rating === 'HIGH'", True),
            ("context.risk_rating !== 'HIGH'", False),
            ("context.risk_score > 50 && context.risk_rating === 'HIGH'", True),
            ("context.risk_score > 90 || context.flagged === true", True),
            ("context.missing === null", True),
        ],
    )
    def test_javascript_style_operators(self, expression, expected):
        context = {"risk_rating": "HIGH", "risk_score": 72, "flagged": True}
        assert evaluate_condition(expression, context) is expected

    def test_operators_inside_string_literals_are_untouched(self):
        assert evaluate_condition("context.note == 'a && b'", {"note": "a && b"}) is True

    def test_empty_condition_holds(self):
        assert evaluate_condition("", {}) is True
        assert evaluate_condition("   ", {}) is True

    def test_missing_value_compares_false(self):
        assert evaluate_condition("context.risk_rating == 'HIGH'", {}) is False

    def test_type_error_makes_condition_false(self):
        assert evaluate_condition("context.risk_score > 60", {}) is False

    @pytest.mark.parametrize(
        "expression",
        [
            "__import__('os').system('echo hi')",
            "context.risk_rating.upper() == 'HIGH'",
            "lambda: True",
            "context.risk_rating ==",
            "[x for x in context]",
        ],
    )
    def test_unsupported_syntax_is_false(self, expression):
        assert evaluate_condition(expression, {"risk_rating": "high"}) is False


class TestResolvePath:
    def test_nested_path(self):
        assert resolve_path({"client": {"partner": {"code": "P001"}}}, "client.partner.code") == "P001"

    def test_missing_segment(self):
        assert resolve_path({"client": {}}, "client.partner.code") is None

    def test_non_mapping_segment(self):
        assert resolve_path({"client": "CL001"}, "client.code") is None
