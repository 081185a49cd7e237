"""Tests for serviceloader.filters module."""

import pytest

from serviceloader.errors import ConfigurationError
from serviceloader.filters import SelectorPattern, apply_filters, compile_patterns


NAMES = ["com.foo.FooImpl", "com.foo.FooImpl2", "com.foo.test.FooStub", "org.bar.BarImpl"]


class TestSelectorPattern:
    """Glob semantics of a single pattern."""

    @pytest.mark.parametrize(
        "pattern,name,expected",
        [
            ("com.foo.FooImpl", "com.foo.FooImpl", True),
            ("com.foo.FooImpl", "com.foo.FooImpl2", False),
            ("*2", "com.foo.FooImpl2", True),
            ("*2", "com.foo.FooImpl", False),
            ("*2*", "com.foo.FooImpl2", True),
            ("com.foo.*", "com.foo.test.FooStub", True),
            ("com.foo.**", "com.foo.test.FooStub", True),
            ("**.test.*", "com.foo.test.FooStub", True),
            ("com.foo.FooImpl?", "com.foo.FooImpl2", True),
            ("com.foo.FooImpl?", "com.foo.FooImpl", False),
            ("com?foo.FooImpl", "com.foo.FooImpl", True),
            ("com.foo", "comXfoo", False),
            ("*impl", "com.foo.FooImpl", False),
            ("*Outer$Inner", "com.foo.Outer$Inner", True),
            ("[a]*", "[a]bc", True),
        ],
    )
    def test_matches(self, pattern, name, expected):
        assert SelectorPattern(pattern).matches(name) is expected

    def test_empty_pattern_rejected(self):
        with pytest.raises(ConfigurationError):
            SelectorPattern("")

    def test_equality(self):
        assert SelectorPattern("*Impl") == SelectorPattern("*Impl")
        assert len({SelectorPattern("*Impl"), SelectorPattern("*Impl")}) == 1

    def test_compile_patterns_accepts_compiled(self):
        compiled = SelectorPattern("*")

        assert compile_patterns([compiled, "x"]) == (compiled, SelectorPattern("x"))


class TestApplyFilters:
    """Include then exclude."""

    def test_no_patterns_keeps_everything(self):
        assert apply_filters(NAMES) == NAMES

    def test_include(self):
        assert apply_filters(NAMES, includes=["*2"]) == ["com.foo.FooImpl2"]

    def test_any_include_matches(self):
        assert apply_filters(NAMES, includes=["*2", "org.*"]) == ["com.foo.FooImpl2", "org.bar.BarImpl"]

    def test_exclude(self):
        assert apply_filters(NAMES, excludes=["*2*", "*.test.*"]) == ["com.foo.FooImpl", "org.bar.BarImpl"]

    def test_exclude_wins_over_include(self):
        result = apply_filters(NAMES, includes=["com.foo.*"], excludes=["*Stub"])

        assert result == ["com.foo.FooImpl", "com.foo.FooImpl2"]

    def test_include_and_exclude_same_name(self):
        assert apply_filters(NAMES, includes=["*FooImpl"], excludes=["com.foo.FooImpl"]) == []

    def test_result_is_subset_of_includes(self):
        includes = ["*Impl"]
        result = apply_filters(NAMES, includes=includes, excludes=["org.*"])

        assert set(result) <= set(apply_filters(NAMES, includes=includes))

    def test_preserves_order(self):
        assert apply_filters(list(reversed(NAMES)), excludes=["org.*"]) == [
            "com.foo.test.FooStub",
            "com.foo.FooImpl2",
            "com.foo.FooImpl",
        ]
