"""Tests for the bigprimes command line."""

import re

import pytest

from bigprimes import (
    main, validate_bit_length, validate_mode, parse_count, format_elapsed,
    is_probable_prime, count_divisors,
)

TIMING = re.compile(r"^Time to Generate: \d{2}:\d{2}:\d{2}\.\d{7}$")


def run(capsys, *argv):
    status = main(list(argv))
    captured = capsys.readouterr()
    return status, captured.out.splitlines(), captured.err


class TestPrimeMode:

    def test_three_primes(self, capsys):
        status, lines, _ = run(capsys, "32", "prime", "3")
        assert status == 0
        assert lines[0] == "BitLength: 32 bits"
        assert TIMING.match(lines[-1])

        body = lines[1:-1]
        # "1: v", "", "2: v", "", "3: v"
        assert len(body) == 5
        assert body[1] == "" and body[3] == ""
        values = []
        for rank, line in zip((1, 2, 3), body[0::2]):
            prefix, value = line.split(": ")
            assert prefix == str(rank)
            values.append(int(value))
        assert len(set(values)) == 3
        for v in values:
            assert v.bit_length() == 32
            assert is_probable_prime(v)

    def test_default_count(self, capsys):
        status, lines, _ = run(capsys, "32", "prime")
        assert status == 0
        assert len(lines) == 3
        assert lines[1].startswith("1: ")

    def test_mode_is_case_insensitive(self, capsys):
        status, lines, _ = run(capsys, "40", "PrImE", "1")
        assert status == 0
        assert int(lines[1].split(": ")[1]).bit_length() == 40


class TestOddMode:

    def test_three_values(self, capsys):
        status, lines, _ = run(capsys, "32", "odd", "3")
        assert status == 0
        assert lines[0] == "BitLength: 32 bits"
        assert TIMING.match(lines[-1])

        body = lines[1:-1]
        # pairs separated by blank lines, none before the first
        assert len(body) == 8
        assert body[2] == "" and body[5] == ""
        for index, (value_line, factor_line) in enumerate([body[0:2], body[3:5], body[6:8]], start=1):
            prefix, value = value_line.split(": ")
            assert prefix == str(index)
            n = int(value)
            assert n % 2 == 1
            assert n.bit_length() == 32
            assert factor_line == f"Number of factors: {count_divisors(n, use_simd=False)}"


class TestValidation:

    @pytest.mark.parametrize("bits", ["31", "33", "24", "0", "-32", "abc", "32.0"])
    def test_bad_bit_length(self, capsys, bits):
        status, lines, err = run(capsys, bits, "prime", "1")
        assert status == 1
        assert lines == []
        assert "Error: <bits> must be a multiple of 8 and at least 32." in err

    def test_bad_mode(self, capsys):
        status, lines, err = run(capsys, "32", "even", "1")
        assert status == 1
        assert lines == []
        assert "Error: <option> must be 'prime' or 'odd'." in err

    def test_wrong_argument_count(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["32"])
        assert exc.value.code == 2
        with pytest.raises(SystemExit):
            main(["32", "prime", "1", "extra"])

    def test_validate_bit_length(self):
        assert validate_bit_length("32") == 32
        assert validate_bit_length("1024") == 1024
        with pytest.raises(ValueError):
            validate_bit_length("12")

    def test_validate_mode(self):
        assert validate_mode("ODD") == "odd"
        with pytest.raises(ValueError):
            validate_mode("primes")

    @pytest.mark.parametrize("raw,expected", [
        (None, 1), ("5", 5), ("x", 1), ("0", 1), ("-3", 1), ("2.5", 1),
    ])
    def test_parse_count(self, raw, expected):
        assert parse_count(raw) == expected


class TestFormatting:

    @pytest.mark.parametrize("seconds,expected", [
        (0, "00:00:00.0000000"),
        (1.5, "00:00:01.5000000"),
        (61.0000001, "00:01:01.0000001"),
        (3725.25, "01:02:05.2500000"),
    ])
    def test_format_elapsed(self, seconds, expected):
        assert format_elapsed(seconds) == expected
