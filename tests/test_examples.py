import math

import pytest

from ustask.examples import (
    SIN_ARGUMENT,
    e_series,
    integrate_pi,
    main,
    run_sections,
    sin_taylor,
    square_table,
    wallis_pi,
)


def test_square_table_holds_squares():
    table = square_table(50)
    assert len(table) == 50
    assert all(value == index * index for index, value in enumerate(table))


def test_square_table_default_size():
    assert len(square_table()) == 1000


def test_square_table_rejects_negative():
    with pytest.raises(ValueError):
        square_table(-1)


def test_wallis_pi_is_close_to_pi():
    assert abs(wallis_pi() - math.pi) < 1e-3
    assert wallis_pi() < math.pi


def test_e_series_is_close_to_e():
    assert abs(e_series() - math.e) < 1e-6


@pytest.mark.parametrize("x", [SIN_ARGUMENT, 0.1, 1.0, -0.7])
def test_sin_taylor_matches_math_sin(x):
    assert abs(sin_taylor(x) - math.sin(x)) < 1e-12


def test_sin_taylor_of_zero():
    assert sin_taylor(0.0) == 0.0


def test_integrate_pi_converges():
    assert abs(integrate_pi(1000) - math.pi) < 1e-5
    assert abs(integrate_pi(10000) - math.pi) < abs(integrate_pi(10) - math.pi)


def test_integrate_pi_rejects_zero_steps():
    with pytest.raises(ValueError):
        integrate_pi(0)


def test_run_sections_matches_sequential_results():
    assert run_sections() == (wallis_pi(), e_series(), sin_taylor())


def test_main_for_prints_nothing(capsys):
    assert main(["for"]) == 0
    assert capsys.readouterr().out == ""


def test_main_sections_prints_three_values(capsys):
    assert main(["sections"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("pi的值为：")
    assert lines[1].startswith("e的值是：")
    assert lines[2].startswith("sin(π/6)的值是：")
    assert abs(float(lines[1].split("：")[1]) - math.e) < 1e-5


def test_main_simd_prints_time_and_pi(capsys):
    assert main(["simd", "--steps", "1000"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("time_used=")
    assert int(lines[0].split("=")[1]) >= 0
    assert lines[1] == "PI=3.14159"