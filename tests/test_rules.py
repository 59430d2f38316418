"""Tests for RuleSet."""

import io
import logging
import re
import threading
from dataclasses import fields
from decimal import Decimal

import pytest

from dataknobs_validate import ConfigurationError, RuleSet, ValidationCheckError
from dataknobs_validate.rules import NULL_CONTRACT_WARNING, RULE_ORDER, RuleOptions


class Animal:
    pass


class Dog(Animal):
    pass


class TestTypes:
    """Test the types rule."""

    def test_single_type(self):
        rules = RuleSet(type="string")
        assert rules.validate("hello") is True
        assert rules.last_failure is None
        assert rules.validate(1) is False
        assert rules.last_failure == "types"

    def test_aliases(self):
        """Test that int and float map onto the canonical tags."""
        rules = RuleSet(types=["int", "float"])
        assert rules.options.types == ("integer", "double")
        assert rules.validate(1)
        assert rules.validate(1.5)
        assert not rules.validate("1")

    def test_bool_is_not_integer(self):
        rules = RuleSet(type="int")
        assert not rules.validate(True)
        assert RuleSet(type="bool").validate(False)

    def test_scalar_pseudo_type(self):
        rules = RuleSet(type="scalar")
        for value in (True, 1, 2.5, "x", b"bytes"):
            assert rules.validate(value), value
        assert not rules.validate([1])
        assert not rules.validate({"a": 1})
        assert not rules.validate(object())

    def test_type_and_types_are_merged(self):
        rules = RuleSet(type="int", types=["string", "int"])
        assert rules.options.types == ("integer", "string")

    def test_container_types(self):
        assert RuleSet(type="list").validate([1, 2])
        assert RuleSet(type="array").validate((1, 2))
        assert RuleSet(type="dict").validate({"a": 1})
        assert not RuleSet(type="map").validate([("a", 1)])
        assert RuleSet(type="object").validate(Dog())
        assert RuleSet(type="resource").validate(io.StringIO())


class TestAllowedValues:
    """Test allowed_values and allowed_values_nc."""

    def test_scalar_membership(self):
        rules = RuleSet(allowed_values=["a", "b"])
        assert rules.validate("a")
        assert not rules.validate("c")
        assert rules.last_failure == "allowed_values"

    def test_sequence_requires_all_members(self):
        rules = RuleSet(allowed_values=["a", "b"])
        assert rules.validate(["a", "b", "a"])
        assert rules.validate([])
        assert not rules.validate(["a", "c"])

    def test_mapping_value_fails(self):
        assert not RuleSet(allowed_values=["a"]).validate({"a": 1})

    def test_booleans_do_not_match_numbers(self):
        rules = RuleSet(allowed_values=[1, 0])
        assert rules.validate(1)
        assert not rules.validate(True)
        assert not RuleSet(allowed_values=[True]).validate(1)

    def test_duplicates_removed(self):
        rules = RuleSet(allowed_values=["a", "a", 1, True, 1])
        assert rules.options.allowed_values == ("a", 1, True)

    def test_case_insensitive(self):
        rules = RuleSet(allowed_values_nc=["Yes", "No"])
        assert rules.validate("YES")
        assert rules.validate("yes")
        assert rules.validate(["no", "Yes"])
        assert not rules.validate("maybe")
        assert rules.last_failure == "allowed_values_nc"

    def test_numeric_strings_match_numbers(self):
        rules = RuleSet(allowed_values=[1, 2.5])
        assert rules.validate("1")
        assert rules.validate(" 2.5 ")
        assert rules.validate(["1", 2.5])
        assert not rules.validate("3")
        assert not rules.validate("one")

    def test_numbers_match_numeric_strings(self):
        rules = RuleSet(allowed_values_nc=["10", "Yes"])
        assert rules.validate(10)
        assert rules.validate(10.0)
        assert not rules.validate(True)

    def test_case_insensitive_non_strings(self):
        rules = RuleSet(allowed_values_nc=["On", 1])
        assert rules.validate(1)
        assert not rules.validate(2)


class TestLengths:
    """Test byte and character length rules."""

    def test_max_and_min_length(self):
        rules = RuleSet(min_length=2, max_length=3)
        assert rules.validate("abc")
        assert not rules.validate("abcd")
        assert rules.last_failure == "max_length"
        assert not rules.validate("a")
        assert rules.last_failure == "min_length"

    def test_bytes_versus_chars(self):
        """A two-byte character counts once as a character."""
        assert not RuleSet(max_length=1).validate("é")
        assert RuleSet(max_length_chars=1).validate("é")
        assert not RuleSet(min_length_chars=2).validate("é")

    def test_scalars_are_measured_as_text(self):
        rules = RuleSet(max_length=3)
        assert rules.validate(123)
        assert not rules.validate(1234)
        assert rules.validate(True)

    def test_non_scalars_fail(self):
        rules = RuleSet(max_length=10)
        assert not rules.validate(["a"])
        assert rules.last_failure == "max_length"

    def test_multibyte_aliases(self):
        rules = RuleSet(mb_max_length=2, mb_min_length=1)
        assert rules.options.max_length_chars == 2
        assert rules.options.min_length_chars == 1


class TestValueBounds:
    """Test max_value and min_value."""

    def test_numeric_bounds(self):
        rules = RuleSet(min_value=0, max_value=10)
        assert rules.validate(7)
        assert rules.validate(10)
        assert rules.validate(0.5)
        assert not rules.validate(11)
        assert rules.last_failure == "max_value"
        assert not rules.validate(-1)
        assert rules.last_failure == "min_value"

    def test_numeric_strings(self):
        rules = RuleSet(min_value=0, max_value=10)
        assert rules.validate("5")
        assert rules.validate(" 2.5 ")
        assert not rules.validate("12")

    def test_non_numeric_fails(self):
        rules = RuleSet(max_value=10)
        assert not rules.validate("high")
        assert not rules.validate(True)
        assert not rules.validate(float("nan"))
        assert rules.last_failure == "max_value"

    def test_decimal_bounds(self):
        rules = RuleSet(max_value="1.5")
        assert rules.options.max_value == Decimal("1.5")
        assert rules.validate(1.25)
        assert not rules.validate(2)


class TestObjectRules:
    """Test isa, resource_type and regex."""

    def test_isa_class(self):
        rules = RuleSet(isa=Animal)
        assert rules.validate(Dog())
        assert not rules.validate("dog")
        assert rules.last_failure == "isa"

    def test_isa_name(self):
        assert RuleSet(isa="Animal").validate(Dog())
        assert RuleSet(isa=f"{Dog.__module__}.Dog").validate(Dog())
        assert not RuleSet(isa="Cat").validate(Dog())

    def test_resource_type(self):
        rules = RuleSet(resource_type="stream")
        assert rules.validate(io.BytesIO())
        assert not rules.validate("stream")
        assert rules.last_failure == "resource_type"

    def test_regex(self):
        rules = RuleSet(regex=r"^[a-z]+$")
        assert rules.validate("abc")
        assert not rules.validate("ABC")
        assert rules.last_failure == "regex"
        assert not rules.validate(["abc"])

    def test_regex_searches(self):
        assert RuleSet(regex="b").validate("abc")

    def test_compiled_regex_and_booleans(self):
        rules = RuleSet(regex=re.compile(r"^1$"))
        assert rules.validate(True)
        assert not rules.validate(False)


class TestCallbacks:
    """Test callback and callbacks."""

    def test_callback(self):
        rules = RuleSet(callback=lambda v: v > 0)
        assert rules.validate(1)
        assert not rules.validate(-1)
        assert rules.last_failure == "callback"

    def test_named_callbacks_in_order(self):
        rules = RuleSet(callbacks={
            "positive": lambda v: v > 0,
            "even": lambda v: v % 2 == 0,
        })
        assert rules.validate(4)
        assert not rules.validate(3)
        assert rules.last_failure == "even (callback)"
        assert not rules.validate(-2)
        assert rules.last_failure == "positive (callback)"

    def test_callback_errors_propagate(self):
        rules = RuleSet(callback=lambda v: 1 / 0)
        with pytest.raises(ZeroDivisionError):
            rules.validate(1)


class TestEvaluation:
    """Test evaluation order and determinism."""

    def test_first_failure_wins(self):
        rules = RuleSet(type="string", max_length=2, regex="^a")
        assert not rules.validate("bcd")
        assert rules.last_failure == "max_length"
        assert not rules.validate(5)
        assert rules.last_failure == "types"

    def test_callbacks_not_called_after_failure(self):
        calls = []
        rules = RuleSet(max_length=1, callback=lambda v: calls.append(v) or True)
        assert not rules.validate("ab")
        assert calls == []

    def test_repeated_validation_is_idempotent(self):
        rules = RuleSet(allowed_values=["a"], regex="a")
        results = [(rules.validate("b"), rules.last_failure) for _ in range(3)]
        assert results == [(False, "allowed_values")] * 3

    def test_every_rule_has_a_check(self):
        for name in RULE_ORDER:
            if name != "callbacks":
                assert callable(getattr(RuleSet, f"_rule_{name}")), name

    def test_later_rule_not_reached(self):
        rules = RuleSet(min_value=5, regex="^x", callback=lambda v: False)
        assert not rules.validate("3")
        assert rules.last_failure == "min_value"

    def test_check_is_pure(self):
        rules = RuleSet(max_length=1)
        result = rules.check("ab")
        assert not result
        assert result.failure == "max_length"
        assert rules.last_failure is None

    def test_last_failure_is_per_thread(self):
        rules = RuleSet(max_length=1)
        assert rules.validate("a")

        thread = threading.Thread(target=rules.validate, args=("abc",))
        thread.start()
        thread.join()

        assert rules.last_failure is None


class TestNullPolicy:
    """Test how RuleSets treat null values."""

    def test_null_is_vacuously_valid_with_warning(self, caplog):
        rules = RuleSet(type="string")
        with caplog.at_level(logging.WARNING, logger="dataknobs_validate.rules"):
            result = rules.check(None)
        assert result.valid
        assert result.warnings == [NULL_CONTRACT_WARNING]
        assert NULL_CONTRACT_WARNING in caplog.text
        assert rules.admits_null is False

    def test_declared_null_is_checked(self):
        rules = RuleSet(types=["null", "string"])
        assert rules.admits_null is True
        result = rules.check(None)
        assert result.valid
        assert result.warnings == []

    def test_null_in_allowed_values(self):
        assert RuleSet(allowed_values=[None, "a"]).admits_null
        assert not RuleSet(type="string", allowed_values=[None, "a"]).admits_null

    def test_validate_ex_skips_null(self):
        RuleSet(type="string").validate_ex(None)


class TestValidateEx:
    """Test exception-raising validation."""

    def test_raises_with_check_name(self):
        with pytest.raises(ValidationCheckError) as exc_info:
            RuleSet(max_length=2).validate_ex("abc")
        assert exc_info.value.check == "max_length"
        assert exc_info.value.value == "abc"

    def test_passes_silently(self):
        RuleSet(max_length=5).validate_ex("abc")


class TestConfiguration:
    """Test construction-time option checking."""

    @pytest.mark.parametrize("options", [
        {"bogus": 1},
        {"type": "bogus"},
        {"type": 5},
        {"types": "string"},
        {"types": []},
        {"allowed_values": []},
        {"allowed_values": "abc"},
        {"allowed_values": [[1]]},
        {"max_length": -1},
        {"max_length": "abc"},
        {"min_length": True},
        {"max_value": "x"},
        {"min_value": 5, "max_value": 1},
        {"min_length": 3, "max_length": 1},
        {"regex": "("},
        {"regex": ""},
        {"isa": 5},
        {"resource_type": "pipe"},
        {"callback": "not callable"},
        {"callbacks": {}},
        {"callbacks": {"x": 1}},
        {"mb_max_length": 2, "max_length_chars": 2},
    ])
    def test_invalid_options(self, options):
        with pytest.raises(ConfigurationError):
            RuleSet(options)

    def test_unknown_option_is_named(self):
        with pytest.raises(ConfigurationError) as exc_info:
            RuleSet(max_lenght=3)
        assert exc_info.value.option == "max_lenght"
        assert "max_lenght" in str(exc_info.value)

    def test_reserved_prefix_ignored(self):
        rules = RuleSet({"_comment": "annotations are ignored", "max_length": 3})
        assert rules.to_dict() == {"max_length": 3}

    def test_keyword_arguments_override_config(self):
        rules = RuleSet({"max_length": 3}, max_length=5)
        assert rules.options.max_length == 5

    def test_digit_string_lengths(self):
        assert RuleSet(max_length="4").options.max_length == 4

    def test_to_dict(self):
        rules = RuleSet(type="int", regex="^1", allowed_values=[1, 2])
        assert rules.to_dict() == {
            "types": ["integer"],
            "allowed_values": [1, 2],
            "regex": "^1",
        }
        assert "RuleSet(" in repr(rules)

    def test_empty_rule_set_accepts_everything(self):
        rules = RuleSet()
        assert rules.validate([1, {"a": object()}])
        assert rules.to_dict() == {}

    def test_read_only_after_construction(self):
        rules = RuleSet(max_length=3)
        with pytest.raises(AttributeError):
            rules.options = RuleOptions(max_length=10)
        with pytest.raises(AttributeError):
            rules.admits_null = True
        assert rules.options.max_length == 3
        assert rules.admits_null is False

    def test_options_follow_evaluation_order(self):
        assert tuple(f.name for f in fields(RuleOptions)) == RULE_ORDER
