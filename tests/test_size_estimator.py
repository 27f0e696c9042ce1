"""
Tests for allocation size estimation.
"""

import pytest

from leaklens.analyzers.size_estimator import estimate_size, type_size
from leaklens.events import Allocation


def alloc(primitive, args):
    return Allocation(variable="p", line=1, primitive=primitive, raw_arguments=args)


class TestTypeSize:
    """Test sizeof() operand resolution"""

    @pytest.mark.parametrize("type_name,expected", [
        ("char", 1),
        ("unsigned char", 1),
        ("int", 4),
        ("float", 4),
        ("double", 8),
        ("long long", 8),
        ("struct node", 4),
    ])
    def test_type_sizes(self, type_name, expected):
        """Test the keyword lookup"""
        assert type_size(type_name) == expected


class TestCFamilySizes:
    """Test sizes of C and C++ allocations"""

    def test_count_times_sizeof(self):
        """Test malloc(n * sizeof(T))"""
        assert estimate_size(alloc("malloc", "10 * sizeof(int)"), "c") == 40

    def test_sizeof_times_count(self):
        """Test malloc(sizeof(T) * n)"""
        assert estimate_size(alloc("malloc", "sizeof(double) * 3"), "c") == 24

    def test_symbolic_count(self):
        """Test that a non-numeric count counts as one element"""
        assert estimate_size(alloc("malloc", "n * sizeof(double)"), "c") == 8

    def test_lone_sizeof(self):
        """Test that sizeof(T) without a count falls back to the first integer"""
        assert estimate_size(alloc("malloc", "sizeof(double)"), "c") == 1
        assert estimate_size(alloc("malloc", "sizeof(int) + 16"), "c") == 16

    def test_long_long(self):
        """Test the extended-precision form"""
        assert estimate_size(alloc("malloc", "sizeof(long long) * 2"), "c") == 16

    def test_bare_integer(self):
        """Test malloc(10)"""
        assert estimate_size(alloc("malloc", "10"), "c") == 10

    def test_first_integer(self):
        """Test that the first bare integer is used"""
        assert estimate_size(alloc("realloc", "p, 64"), "c") == 64

    def test_no_integer(self):
        """Test that unparsable arguments give one byte"""
        assert estimate_size(alloc("malloc", "len"), "c") == 1
        assert estimate_size(alloc("malloc", ""), "c") == 1

    def test_zero_is_one(self):
        """Test that a zero size is reported as one byte"""
        assert estimate_size(alloc("malloc", "0"), "c") == 1

    def test_calloc_numbers(self):
        """Test calloc(count, size)"""
        assert estimate_size(alloc("calloc", "5, 4"), "c") == 20

    def test_calloc_sizeof(self):
        """Test that a sizeof() operand of calloc counts as one"""
        assert estimate_size(alloc("calloc", "5, sizeof(int)"), "c") == 5

    def test_calloc_defaults(self):
        """Test that unparsable calloc operands default to one"""
        assert estimate_size(alloc("calloc", "n, sizeof(double)"), "c") == 1
        assert estimate_size(alloc("calloc", "7"), "c") == 7
        assert estimate_size(alloc("calloc", ""), "c") == 1

    def test_new_array(self):
        """Test new T[n]"""
        assert estimate_size(alloc("new[]", "10"), "cpp") == 40

    def test_new_array_symbolic(self):
        """Test new T[n] with a variable count"""
        assert estimate_size(alloc("new[]", "n"), "cpp") == 4

    def test_new(self):
        """Test scalar new"""
        assert estimate_size(alloc("new", "1, 2"), "cpp") == 4

    def test_unknown_language_is_c(self):
        """Test that unrecognized languages are sized like C"""
        assert estimate_size(alloc("malloc", "10 * sizeof(int)"), "fortran") == 40

    def test_malformed_arguments(self):
        """Test that malformed input yields the language default"""
        assert estimate_size(alloc("malloc", object()), "c") == 4


class TestManagedSizes:
    """Test sizes in languages without sizeof()"""

    def test_javascript_numeric_argument(self):
        """Test element count times 8 bytes"""
        assert estimate_size(alloc("ArrayBuffer", (16,)), "javascript") == 128

    def test_javascript_no_arguments(self):
        """Test the default of one element"""
        assert estimate_size(alloc("Map", ()), "javascript") == 8

    def test_javascript_non_numeric_argument(self):
        """Test identifier and unevaluated arguments"""
        assert estimate_size(alloc("Array", ("n",)), "javascript") == 8
        assert estimate_size(alloc("Foo", (None,)), "javascript") == 8

    def test_python_text_argument(self):
        """Test a count parsed from argument text"""
        assert estimate_size(alloc("malloc", "16"), "python") == 128

    def test_java(self):
        """Test the 4-byte element size"""
        assert estimate_size(alloc("new[]", "100"), "java") == 400

    def test_rust_non_numeric_text(self):
        """Test text without a leading integer"""
        assert estimate_size(alloc("new", "abc"), "rust") == 8

    def test_go_fractional_count(self):
        """Test a fractional numeric argument"""
        assert estimate_size(alloc("Array", (2.5,)), "go") == 20

    def test_never_below_one(self):
        """Test that negative counts are clamped"""
        assert estimate_size(alloc("Array", (-3,)), "javascript") == 1
