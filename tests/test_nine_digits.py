import math
import random

import pytest

import nine_digits
from nine_digits import (
    BLOCK_SIZE,
    MAX_DIGITS,
    KNOWN_BLOCKS,
    benchmark,
    calc_pi,
    compute_pi_reference,
    extract_digits,
    format_block,
    inv_mod,
    main,
    mul_mod,
    next_prime,
    nine_digits_at,
    not_prime,
    odd_primes,
    pow_mod,
    series_length,
    validate_known_blocks,
    verify_against_reference,
)


PI_50 = "3.14159265358979323846264338327950288419716939937510"


@pytest.fixture(scope="module")
def pi_100():
    return compute_pi_reference(100)


def _slow_pow(a, b, m):
    r = 1
    for _ in range(b):
        r = r * a % m
    return r % m


def test_mul_mod():
    assert mul_mod(7, 8, 5) == 1
    assert mul_mod(0, 12, 7) == 0
    m = 2 ** 31 - 1
    assert mul_mod(m - 1, m - 1, m) == 1


def test_inv_mod_coprime_pairs():
    rng = random.Random(1997)
    for _ in range(500):
        y = rng.randrange(2, 100000)
        x = rng.randrange(1, y)
        if math.gcd(x, y) != 1:
            continue
        r = inv_mod(x, y)
        assert 0 <= r < y
        assert r * x % y == 1


def test_inv_mod_prime_powers():
    for a, e in [(3, 5), (7, 3), (13, 2), (2, 10)]:
        av = a ** e
        for x in range(1, av):
            if x % a:
                assert inv_mod(x, av) * x % av == 1


def test_inv_mod_rejects_non_coprime():
    with pytest.raises(AssertionError):
        inv_mod(6, 9)


def test_pow_mod_matches_slow_exponentiation():
    for a in range(0, 12):
        for b in range(0, 20):
            for m in range(1, 30):
                assert pow_mod(a, b, m) == _slow_pow(a, b, m)


def test_pow_mod_large():
    assert pow_mod(10, 12345, 2147483629) == pow(10, 12345, 2147483629)
    assert pow_mod(10, 0, 1) == 0


def test_not_prime():
    assert [n for n in range(3, 40) if not not_prime(n)] == [
        3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37]
    assert not_prime(4)
    assert not_prime(9)
    assert not_prime(49)


def test_next_prime():
    assert next_prime(3) == 5
    assert next_prime(7) == 11
    assert next_prime(23) == 29
    assert next_prime(89) == 97


def test_odd_primes():
    assert list(odd_primes(20)) == [3, 5, 7, 11, 13, 17, 19]
    assert list(odd_primes(19)) == [3, 5, 7, 11, 13, 17, 19]
    assert list(odd_primes(2)) == []
    # restartable: every call begins again at 3
    assert next(odd_primes(100)) == 3


def test_series_length():
    assert series_length(1) == int(21 * math.log(10) / math.log(2))
    assert series_length(1) == 69


def test_first_two_blocks():
    assert nine_digits_at(1) == 141592653
    assert nine_digits_at(10) == 589793238


def test_known_blocks():
    for pos, expected in KNOWN_BLOCKS.items():
        assert nine_digits_at(pos) == expected
    assert validate_known_blocks(verbose=False)


def test_blocks_at_unaligned_positions(pi_100):
    for n in (2, 5, 33, 71):
        assert format_block(nine_digits_at(n)) == pi_100[n + 1:n + 10]


def test_nine_digits_at_rejects_bad_position():
    with pytest.raises(ValueError):
        nine_digits_at(0)
    with pytest.raises(ValueError):
        nine_digits_at(-5)


def test_format_block_pads_leading_zeros():
    assert format_block(97494459) == "097494459"
    assert format_block(141592653, 4) == "1415"
    assert format_block(5, 3) == "000"


def test_reference_matches_known_prefix(pi_100):
    assert pi_100.startswith(PI_50)
    assert len(pi_100) == 102


def test_calc_pi_first_hundred_digits(pi_100):
    assert calc_pi(100) == pi_100


def test_calc_pi_lengths():
    for d in (1, 8, 9, 10, 17, 18, 19):
        pi = calc_pi(d)
        assert len(pi) == 2 + d
        assert pi.startswith("3.")
        assert pi[2:].isdigit()
        assert PI_50.startswith(pi)


def test_calc_pi_is_deterministic():
    assert calc_pi(30) == calc_pi(30)


def test_calc_pi_zero_digits():
    assert calc_pi(0) == "3."
    assert calc_pi(-3) == "3."


def test_progress_single_block():
    for d in range(1, BLOCK_SIZE + 1):
        seen = []
        calc_pi(d, lambda done: seen.append(done) or True)
        assert seen == [d]


def test_progress_two_blocks():
    seen = []
    calc_pi(10, lambda done: seen.append(done) or True)
    assert seen == [9, 10]


def test_progress_strictly_increasing():
    seen = []
    assert calc_pi(40, lambda done: seen.append(done) or True) is not None
    assert seen == [9, 18, 27, 36, 40]
    assert all(a < b for a, b in zip(seen, seen[1:]))


def test_cancel_on_first_block():
    calls = []

    def progress(done):
        calls.append(done)
        return False

    assert calc_pi(100, progress) is None
    assert calls == [9]


def test_cancel_later():
    calls = []

    def progress(done):
        calls.append(done)
        return done < 27

    assert calc_pi(100, progress) is None
    assert calls == [9, 18, 27]


def test_extract_digits(pi_100):
    assert extract_digits(1, 12) == "141592653589"
    assert extract_digits(50, 20) == pi_100[51:71]
    assert extract_digits(7, 0) == ""
    with pytest.raises(ValueError):
        extract_digits(0, 3)
    with pytest.raises(ValueError):
        extract_digits(1, -1)


def test_verify_against_reference(capsys):
    assert verify_against_reference(30, verbose=True)
    out = capsys.readouterr().out
    assert "All blocks verified correctly." in out
    assert "MISMATCH" not in out


def test_main_prints_digits(capsys):
    assert main(["20", "--quiet"]) == 0
    assert capsys.readouterr().out.strip() == PI_50[:22]


def test_main_background(capsys):
    assert main(["12", "--quiet", "--background"]) == 0
    assert capsys.readouterr().out.strip() == PI_50[:14]


def test_main_rejects_zero_digits(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["0"])
    assert exc.value.code == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "digits must be between 1 and" in captured.err


def test_main_rejects_too_many_digits(capsys):
    with pytest.raises(SystemExit) as exc:
        main([str(MAX_DIGITS + 1), "--quiet"])
    assert exc.value.code == 2
    assert str(MAX_DIGITS) in capsys.readouterr().err


def test_benchmark():
    results = benchmark([1, 10], verbose=False)
    assert sorted(results) == [1, 10]
    assert results[1][0] == 141592653
    assert results[10][0] == 589793238
    assert all(elapsed >= 0 for _, elapsed in results.values())


def test_benchmark_report(capsys):
    benchmark([19], verbose=True)
    out = capsys.readouterr().out
    assert "Benchmark: Nine-Digit Block Extraction" in out
    assert "462643383" in out


def test_main_checks_then_prints(capsys):
    assert main(["9", "--quiet", "--verify", "18", "--known", "--benchmark"]) == 0
    assert capsys.readouterr().out.strip() == PI_50[:11]


def test_main_fails_when_known_block_is_wrong(monkeypatch, capsys):
    monkeypatch.setattr(nine_digits, "KNOWN_BLOCKS", {1: 141592654})
    assert main(["9", "--known"]) == 1
    out = capsys.readouterr().out
    assert "FAIL" in out
    assert PI_50[:11] not in out


def test_main_fails_when_verification_fails(monkeypatch, capsys):
    monkeypatch.setattr(nine_digits, "compute_pi_reference",
                        lambda digits: "3." + "0" * digits)
    assert main(["9", "--verify", "9"]) == 1
    assert "MISMATCH" in capsys.readouterr().out
