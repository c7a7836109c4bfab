"""Tests for recursive validation against compiled templates."""

from __future__ import annotations

import json
from decimal import Decimal
from fractions import Fraction
from typing import Any

import pytest

from cdl.domain.enums import EnumType
from cdl.domain.errors import CdlError, ErrorKind
from cdl.domain.grammar import compile_template
from cdl.domain.validator import CompiledTemplate, is_integer, is_number, split_host_port


def is_one_or_two(value: Any) -> CdlError | None:
    if not isinstance(value, int | float):
        return CdlError(ErrorKind.BAD_VALUE, "is not a number")
    if value not in (1, 2):
        return CdlError(ErrorKind.BAD_VALUE, "is not 1 or 2")
    return None


EXAMPLE = {
    "/": (
        "{}apple peach? pear* plum+ raspberry{1,3} strawberry! kiwi{1,4}? "
        "guava!{1,2} orange?{2,31} mango? blueberry?"
    ),
    "apple": "int",
    "peach": "number",
    "pear": "str",
    "plum": is_one_or_two,
    "mango": "[]planet{2,4}",
    "planet": "{}earth venus? jupiter?",
    "jupiter": "[]gods",
    "gods": "{}thor? odin?",
    "blueberry": "{}red yellow?",
}

BASE = """
    "apple": 3,
    "pear": [],
    "plum": [1],
    "raspberry": ["a", "b"],
    "strawberry": "here",
    "guava": ["c", "d"]
"""


def doc(extra: str = "", base: str = BASE) -> Any:
    body = base + ("," + extra if extra else "")
    return json.loads("{" + body + "}")


@pytest.fixture(scope="module")
def example() -> CompiledTemplate:
    return compile_template(EXAMPLE)


def failure(ct: CompiledTemplate, instance: Any) -> CdlError:
    with pytest.raises(CdlError) as exc_info:
        ct.validate(instance)
    return exc_info.value


class TestExampleTemplate:
    def test_minimal(self, example: CompiledTemplate) -> None:
        example.validate(doc())

    def test_all_optional_present(self, example: CompiledTemplate) -> None:
        example.validate(
            json.loads(
                """{
                    "apple": 3, "peach": 4.2, "pear": ["astring"], "plum": [1, 2],
                    "raspberry": ["a", "b", "c"], "strawberry": "here",
                    "kiwi": [1, 2, 3, 4], "orange": [1, 2, 3, 4, 5], "guava": ["d"]
                }"""
            )
        )

    def test_scalar_type_mismatch(self, example: CompiledTemplate) -> None:
        bad = doc(base=BASE.replace('"apple": 3', '"apple": "notmeanttobeastring"'))
        err = failure(example, bad)
        assert err.kind is ErrorKind.BAD_TYPE
        assert err.context == ["'apple'"]

    def test_array_element_type_mismatch(self, example: CompiledTemplate) -> None:
        err = failure(example, doc(base=BASE.replace('"pear": []', '"pear": [1]')))
        assert err.kind is ErrorKind.BAD_TYPE
        assert err.context == ["index 0", "'pear'"]

    def test_validator_error_propagates(self, example: CompiledTemplate) -> None:
        err = failure(example, doc(base=BASE.replace('"plum": [1]', '"plum": [4]')))
        assert err.kind is ErrorKind.BAD_VALUE
        assert err.supplementary == "is not 1 or 2"

    def test_nested_arrays_of_maps(self, example: CompiledTemplate) -> None:
        example.validate(doc('"mango": [{"earth": 1}, {"earth": 1, "venus": 1}]'))

    @pytest.mark.parametrize("count", [1, 5])
    def test_nested_array_out_of_range(self, example: CompiledTemplate, count: int) -> None:
        planets = ", ".join(['{"earth": 1}'] * count)
        err = failure(example, doc(f'"mango": [{planets}]'))
        assert err.kind is ErrorKind.OUT_OF_RANGE
        assert err.context == ["'mango'"]

    def test_expected_map_in_array(self, example: CompiledTemplate) -> None:
        err = failure(example, doc('"mango": [1, 2]'))
        assert err.kind is ErrorKind.EXPECTED_MAP
        assert err.context == ["index 0", "'mango'"]

    def test_unknown_key_in_nested_map(self, example: CompiledTemplate) -> None:
        err = failure(example, doc('"mango": [{"foo": "bar"}, {"foo": "bar"}]'))
        assert err.kind is ErrorKind.BAD_KEY
        assert err.context == ["'foo'", "index 0", "'mango'"]

    def test_deep_nesting(self, example: CompiledTemplate) -> None:
        example.validate(
            doc(
                '"mango": [{"earth": 1}, '
                '{"earth": 1, "venus": 1, "jupiter": [{"thor": 1}, {"odin": 1}]}]'
            )
        )

    def test_deep_expected_array(self, example: CompiledTemplate) -> None:
        err = failure(
            example, doc('"mango": [{"earth": 1}, {"earth": 1, "venus": 1, "jupiter": 1}]')
        )
        assert err.kind is ErrorKind.EXPECTED_ARRAY
        assert str(err).endswith("near 'jupiter' at index 1 at 'mango'")

    def test_deep_bad_key(self, example: CompiledTemplate) -> None:
        err = failure(
            example,
            doc('"mango": [{"earth": 1}, {"earth": 1, "jupiter": [{"wotan": 1}, {"odin": 1}]}]'),
        )
        assert err.kind is ErrorKind.BAD_KEY
        assert err.breadcrumb == ["'mango'", "index 1", "'jupiter'", "index 0", "'wotan'"]

    @pytest.mark.parametrize("element", ["1", "[1]"])
    def test_deep_expected_map(self, example: CompiledTemplate, element: str) -> None:
        err = failure(
            example, doc(f'"mango": [{{"earth": 1}}, {{"earth": 1, "jupiter": [{element}]}}]')
        )
        assert err.kind is ErrorKind.EXPECTED_MAP

    def test_optional_map(self, example: CompiledTemplate) -> None:
        example.validate(doc('"blueberry": {"red": 1}'))

    @pytest.mark.parametrize(
        "value,kind",
        [
            ("1", ErrorKind.EXPECTED_MAP),
            ("[1]", ErrorKind.EXPECTED_MAP),
            ('{"green": 1}', ErrorKind.BAD_KEY),
            ('{"yellow": 1}', ErrorKind.MISSING_MANDATORY),
        ],
    )
    def test_bad_optional_map(self, example: CompiledTemplate, value: str, kind: ErrorKind) -> None:
        assert failure(example, doc(f'"blueberry": {value}')).kind is kind

    def test_idempotent(self, example: CompiledTemplate) -> None:
        bad = doc('"blueberry": {"green": 1}')
        first = failure(example, bad)
        second = failure(example, bad)
        assert str(first) == str(second)
        assert first is not second
        example.validate(doc())
        example.validate(doc())


class TestMapValidation:
    @pytest.fixture
    def ct(self) -> CompiledTemplate:
        return compile_template({"/": "{}a b?", "a": "int"})

    def test_mandatory_present(self, ct: CompiledTemplate) -> None:
        ct.validate({"a": 1})

    def test_missing_mandatory(self, ct: CompiledTemplate) -> None:
        err = failure(ct, {})
        assert err.kind is ErrorKind.MISSING_MANDATORY
        assert "'a'" in err.supplementary

    def test_all_missing_named(self) -> None:
        ct = compile_template({"/": "{}z a m?"})
        err = failure(ct, {})
        assert err.supplementary == "missing 'a', 'z'"

    def test_unknown_key(self, ct: CompiledTemplate) -> None:
        err = failure(ct, {"a": 1, "zzz": 1})
        assert err.kind is ErrorKind.BAD_KEY
        assert "zzz" in str(err)

    def test_non_string_key(self, ct: CompiledTemplate) -> None:
        err = failure(ct, {"a": 1, 7: 1})
        assert err.kind is ErrorKind.BAD_KEY
        assert err.context == ["'7'"]

    @pytest.mark.parametrize("value", [[], "a", 1, None])
    def test_expected_map(self, ct: CompiledTemplate, value: Any) -> None:
        assert failure(ct, value).kind is ErrorKind.EXPECTED_MAP

    def test_unconstrained_child(self, ct: CompiledTemplate) -> None:
        ct.validate({"a": 1, "b": {"anything": ["goes"]}})

    def test_optional_array_may_be_absent(self) -> None:
        ct = compile_template({"/": "{}a?*"})
        ct.validate({})
        ct.validate({"a": []})

    def test_mandatory_array_must_be_present(self) -> None:
        ct = compile_template({"/": "{}a*"})
        assert failure(ct, {}).kind is ErrorKind.MISSING_MANDATORY

    def test_scenario(self) -> None:
        ct = compile_template({"/": "{}apple peach?", "apple": "int"})
        ct.validate({"apple": 3})
        missing = failure(ct, {})
        assert missing.kind is ErrorKind.MISSING_MANDATORY
        assert "apple" in str(missing)
        extra = failure(ct, {"apple": 3, "extra": 1})
        assert extra.kind is ErrorKind.BAD_KEY
        assert "extra" in str(extra)


class TestArrayValidation:
    @pytest.fixture
    def ct(self) -> CompiledTemplate:
        return compile_template({"/": "[]x{2,4}", "x": "int"})

    @pytest.mark.parametrize("length", [1, 5])
    def test_out_of_range(self, ct: CompiledTemplate, length: int) -> None:
        err = failure(ct, [0] * length)
        assert err.kind is ErrorKind.OUT_OF_RANGE
        assert err.supplementary == f"got {length}, expecting between 2 and 4"

    @pytest.mark.parametrize("length", [2, 3, 4])
    def test_in_range(self, ct: CompiledTemplate, length: int) -> None:
        ct.validate([0] * length)

    def test_invalid_element(self, ct: CompiledTemplate) -> None:
        err = failure(ct, [1, 2, "three"])
        assert err.kind is ErrorKind.BAD_TYPE
        assert err.context == ["index 2"]

    def test_tuple_is_a_sequence(self, ct: CompiledTemplate) -> None:
        ct.validate((1, 2))

    @pytest.mark.parametrize("value", ["ab", {"a": 1}, 3, b"ab"])
    def test_expected_array(self, ct: CompiledTemplate, value: Any) -> None:
        assert failure(ct, value).kind is ErrorKind.EXPECTED_ARRAY

    def test_at_least_message(self) -> None:
        ct = compile_template({"/": "{}a+"})
        err = failure(ct, {"a": []})
        assert err.supplementary == "got 0, expecting at least 1"


class TestScalars:
    @pytest.mark.parametrize("value", [0, 3, -2, 4.0, 1e3, Decimal("5"), Fraction(4, 2)])
    def test_integer_accepts(self, value: Any) -> None:
        compile_template({"/": "integer"}).validate(value)

    @pytest.mark.parametrize("value", [4.2, True, "4", None, float("inf"), float("nan")])
    def test_integer_rejects(self, value: Any) -> None:
        err = failure(compile_template({"/": "integer"}), value)
        assert err.kind is ErrorKind.BAD_TYPE

    @pytest.mark.parametrize("value", [0, 4.2, -1, Decimal("1.5"), Fraction(1, 3)])
    def test_number_accepts(self, value: Any) -> None:
        compile_template({"/": "number"}).validate(value)

    @pytest.mark.parametrize("value", ["1", True, False, None, [1], 1j])
    def test_number_rejects(self, value: Any) -> None:
        assert failure(compile_template({"/": "number"}), value).kind is ErrorKind.BAD_TYPE

    @pytest.mark.parametrize(
        "value", ["localhost:80", "127.0.0.1:8080", "[::1]:443", ":80", "host:", "host:http"]
    )
    def test_ipport_accepts(self, value: str) -> None:
        compile_template({"/": "ipport"}).validate(value)

    @pytest.mark.parametrize(
        "value", ["localhost", "::1:80", "[::1]", "[::1]80", "[::1", "a]:80", 80, None]
    )
    def test_ipport_rejects(self, value: Any) -> None:
        assert failure(compile_template({"/": "ipport"}), value).kind is ErrorKind.BAD_TYPE

    @pytest.mark.parametrize(
        "name,value",
        [
            ("str", "x"),
            ("int", 1),
            ("float", 1.5),
            ("bool", True),
            ("dict", {}),
            ("list", []),
            ("NoneType", None),
        ],
    )
    def test_exact_type_name(self, name: str, value: Any) -> None:
        compile_template({"/": name}).validate(value)

    @pytest.mark.parametrize("name,value", [("float", 1), ("int", True), ("int", 1.0)])
    def test_no_coercion(self, name: str, value: Any) -> None:
        err = failure(compile_template({"/": name}), value)
        assert err.kind is ErrorKind.BAD_TYPE
        assert err.supplementary == f"got {type(value).__name__} expected {name}"


class TestEnumRule:
    @pytest.fixture
    def ct(self) -> CompiledTemplate:
        return compile_template({"/": "{}colour", "colour": EnumType("red", "green")})

    def test_member(self, ct: CompiledTemplate) -> None:
        ct.validate({"colour": "red"})

    def test_non_member(self, ct: CompiledTemplate) -> None:
        err = failure(ct, {"colour": "blue"})
        assert err.kind is ErrorKind.BAD_ENUM_VALUE
        assert err.supplementary == "unknown value 'blue'"

    def test_non_string(self, ct: CompiledTemplate) -> None:
        assert failure(ct, {"colour": 1}).kind is ErrorKind.BAD_TYPE


class TestValidatorRule:
    def test_raised_error_propagates(self) -> None:
        def reject(value: Any) -> None:
            raise CdlError(ErrorKind.BAD_VALUE, "nope")

        err = failure(compile_template({"/": "{}a", "a": reject}), {"a": 1})
        assert err.kind is ErrorKind.BAD_VALUE
        assert err.context == ["'a'"]

    def test_receives_raw_value(self) -> None:
        seen: list[Any] = []
        ct = compile_template({"/": lambda value: seen.append(value)})
        ct.validate({"x": [1]})
        assert seen == [{"x": [1]}]

    def test_bad_return_is_internal(self) -> None:
        err = failure(compile_template({"/": lambda value: "oops"}), 1)
        assert err.kind is ErrorKind.INTERNAL


class TestRecursion:
    def test_root_alias_allows_recursive_trees(self) -> None:
        ct = compile_template({"/": "{}name children?*", "name": "str", "children": ""})
        ct.validate({"name": "a", "children": [{"name": "b", "children": [{"name": "c"}]}]})
        err = failure(ct, {"name": "a", "children": [{"name": "b", "children": [{}]}]})
        assert err.kind is ErrorKind.MISSING_MANDATORY
        assert err.breadcrumb == ["'children'", "index 0", "'children'", "index 0"]


class TestCheck:
    def test_returns_none_on_success(self) -> None:
        assert compile_template({"/": "str"}).check("x") is None

    def test_returns_error(self) -> None:
        err = compile_template({"/": "str"}).check(1)
        assert isinstance(err, CdlError)
        assert err.kind is ErrorKind.BAD_TYPE


class TestPredicates:
    def test_is_number_excludes_bool(self) -> None:
        assert is_number(1)
        assert not is_number(True)

    def test_is_integer(self) -> None:
        assert is_integer(2.0)
        assert not is_integer(2.5)

    def test_split_host_port(self) -> None:
        assert split_host_port("[::1]:80") == ("::1", "80")
        assert split_host_port("example.com:443") == ("example.com", "443")


class TestSharedValidatorErrors:
    SHARED = CdlError(ErrorKind.BAD_TYPE, "nope")

    def test_returned_error_gives_same_result_each_time(self) -> None:
        ct = compile_template({"/": "{}a", "a": lambda value: self.SHARED})
        first = ct.check({"a": 1})
        second = ct.check({"a": 1})
        assert first is not None and second is not None
        assert str(first) == str(second)
        assert first.context == ["'a'"]
        assert self.SHARED.context == []

    def test_raised_error_gives_same_result_each_time(self) -> None:
        def reject(value: Any) -> None:
            raise self.SHARED

        ct = compile_template({"/": "[]a", "a": reject})
        assert str(ct.check([1])) == str(ct.check([1]))
        assert self.SHARED.context == []
