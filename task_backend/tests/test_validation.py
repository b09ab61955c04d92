import pytest

from src.api.errors import ValidationError
from src.api.validation import (
    ValidationRule,
    ensure_allowed_fields,
    find_invalid_fields,
    is_valid_email,
    rules_for_present_fields,
    validate_fields,
)

RULES = [
    ValidationRule("title", required=True, type="string", min_length=1, max_length=10),
    ValidationRule("count", type="number"),
    ValidationRule("done", type="boolean"),
]


class TestValidateFields:
    def test_valid_body_has_no_errors(self):
        assert validate_fields(RULES, {"title": "hello", "count": 3, "done": False}) == []

    def test_optional_fields_may_be_missing_null_or_empty(self):
        assert validate_fields(RULES, {"title": "x", "count": None, "done": ""}) == []

    @pytest.mark.parametrize("body", [{}, {"title": None}, {"title": ""}])
    def test_missing_required_field_yields_single_error(self, body):
        assert validate_fields(RULES, body) == [{"field": "title", "message": "title is required"}]

    def test_required_error_skips_type_and_length_checks(self):
        rules = [ValidationRule("name", required=True, type="number", min_length=3)]
        errors = validate_fields(rules, {"name": ""})
        assert errors == [{"field": "name", "message": "name is required"}]

    def test_every_rule_is_evaluated(self):
        errors = validate_fields(RULES, {"title": "x" * 11, "count": "3", "done": "yes"})
        assert errors == [
            {"field": "title", "message": "title must be no more than 10 characters"},
            {"field": "count", "message": "count must be a number"},
            {"field": "done", "message": "done must be a boolean"},
        ]

    def test_min_length(self):
        rules = [ValidationRule("code", min_length=3)]
        assert validate_fields(rules, {"code": "ab"}) == [
            {"field": "code", "message": "code must be at least 3 characters"}
        ]

    def test_length_checked_alongside_type_error(self):
        rules = [ValidationRule("flag", type="boolean", max_length=2)]
        assert validate_fields(rules, {"flag": "true"}) == [
            {"field": "flag", "message": "flag must be a boolean"},
            {"field": "flag", "message": "flag must be no more than 2 characters"},
        ]

    def test_bool_is_not_a_number(self):
        rules = [ValidationRule("n", type="number")]
        assert validate_fields(rules, {"n": True}) == [{"field": "n", "message": "n must be a number"}]
        assert validate_fields(rules, {"n": 1.5}) == []

    def test_zero_and_false_are_present_values(self):
        rules = [ValidationRule("n", required=True, type="number"), ValidationRule("b", required=True)]
        assert validate_fields(rules, {"n": 0, "b": False}) == []

    def test_unknown_rule_type_is_rejected(self):
        with pytest.raises(ValueError):
            ValidationRule("x", type="date")


class TestEmail:
    @pytest.mark.parametrize("value", ["a@b.co", "A@B.COM", "first.last@sub.example.org"])
    def test_valid(self, value):
        assert is_valid_email(value)

    @pytest.mark.parametrize("value", ["not-an-email", "a@b", "@b.co", "a@@b.co", "a b@c.co", ""])
    def test_invalid(self, value):
        assert not is_valid_email(value)

    def test_email_rule(self):
        rules = [ValidationRule("email", required=True, type="email")]
        assert validate_fields(rules, {"email": "a@b.co"}) == []
        assert validate_fields(rules, {"email": "a@b"}) == [
            {"field": "email", "message": "email must be a valid email address"}
        ]


class TestPartialUpdateRules:
    def test_required_only_when_key_present(self):
        rules = rules_for_present_fields(RULES, {"count": 1})
        assert validate_fields(rules, {"count": 1}) == []

        rules = rules_for_present_fields(RULES, {"title": ""})
        assert validate_fields(rules, {"title": ""}) == [{"field": "title", "message": "title is required"}]

    def test_optional_rules_stay_optional(self):
        rules = rules_for_present_fields(RULES, {"count": None})
        assert [r.required for r in rules] == [False, False, False]


class TestUpdateFieldFilter:
    ALLOWED = ("title", "description", "completed", "userId")

    def test_allowed_body_passes(self):
        assert find_invalid_fields({"title": "t", "completed": True}, self.ALLOWED) == []
        ensure_allowed_fields({}, self.ALLOWED)

    def test_invalid_fields_in_body_order(self):
        body = {"zeta": 1, "title": "t", "alpha": 2}
        assert find_invalid_fields(body, self.ALLOWED) == ["zeta", "alpha"]

    def test_ensure_allowed_fields_raises(self):
        with pytest.raises(ValidationError) as excinfo:
            ensure_allowed_fields({"foo": 1}, self.ALLOWED)
        err = excinfo.value
        assert err.status_code == 400
        assert err.message == "Invalid fields: foo. Allowed fields: title, description, completed, userId"
        assert err.details == {"invalidFields": ["foo"], "allowedFields": list(self.ALLOWED)}
