import itertools

import numpy as np
import pytest

from existon_automaton.errors import DimensionMismatch
from existon_automaton.multivector import (
    Multivector,
    blade_labels,
    geometric_product_batch,
    grade,
    product_table,
    random_coefficients,
    reordering_sign,
    sum_multivectors,
)
from existon_automaton.rng import make_rng


def _blade_product_by_sorting(a: int, b: int):
    """Reference e_a e_b: concatenate generator lists, bubble sort, cancel equal pairs."""
    seq = [k for k in range(8) if (a >> k) & 1] + [k for k in range(8) if (b >> k) & 1]
    sign = 1
    changed = True
    while changed:
        changed = False
        for i in range(len(seq) - 1):
            if seq[i] > seq[i + 1]:
                seq[i], seq[i + 1] = seq[i + 1], seq[i]
                sign = -sign
                changed = True
    out = []
    for g in seq:
        if out and out[-1] == g:
            out.pop()
        else:
            out.append(g)
    blade = sum(1 << g for g in out)
    return blade, sign


@pytest.mark.parametrize("order", [0, 1, 2, 3, 4])
def test_blade_signs_match_reference_sorting(order):
    n = 1 << order
    for a, b in itertools.product(range(n), repeat=2):
        blade, sign = _blade_product_by_sorting(a, b)
        assert a ^ b == blade
        assert reordering_sign(a, b) == sign


def test_cl2_multiplication_table():
    one = Multivector.scalar(2, 1)
    e0 = Multivector.basis(2, 0b01)
    e1 = Multivector.basis(2, 0b10)
    e01 = Multivector.basis(2, 0b11)
    assert e0 * e0 == one
    assert e1 * e1 == one
    assert e0 * e1 == e01
    assert e1 * e0 == Multivector.basis(2, 0b11, -1)
    assert e01 * e01 == Multivector.scalar(2, -1)


def test_cl3_pseudoscalar_squares_to_minus_one():
    i3 = Multivector.basis(3, 0b111)
    assert i3 * i3 == Multivector.scalar(3, -1)


@pytest.mark.parametrize("order", [1, 2, 3, 4])
def test_product_has_full_length_and_zero_annihilates(order):
    rng = make_rng(order)
    zero = Multivector.zero(order)
    for _ in range(10):
        u = Multivector.random(order, rng)
        assert len(u * u) == 1 << order
        assert u * zero == zero
        assert zero * u == zero


@pytest.mark.parametrize("order", [1, 2, 3, 4])
def test_scalar_one_is_two_sided_identity(order):
    rng = make_rng(100 + order)
    one = Multivector.scalar(order, 1)
    for _ in range(10):
        v = Multivector.random(order, rng)
        assert one * v == v
        assert v * one == v


@pytest.mark.parametrize("order", [1, 2, 3])
def test_associative_on_basis_generators(order):
    n = 1 << order
    blades = [Multivector.basis(order, b) for b in range(n)]
    for u, v, w in itertools.product(blades, repeat=3):
        assert (u * v) * w == u * (v * w)


@pytest.mark.parametrize("order", [1, 2, 3, 4])
def test_associative_on_random_tristate_multivectors(order):
    # Z/3Z is a field, so wraparound does not break associativity.
    rng = make_rng(200 + order)
    for _ in range(25):
        u, v, w = (Multivector.random(order, rng) for _ in range(3))
        assert (u * v) * w == u * (v * w)


@pytest.mark.parametrize("order", [1, 2, 3])
def test_product_distributes_over_combine(order):
    rng = make_rng(300 + order)
    for _ in range(25):
        u, v, w = (Multivector.random(order, rng) for _ in range(3))
        assert u * (v + w) == u * v + u * w
        assert (v + w) * u == v * u + w * u


def test_batch_product_matches_single_products():
    rng = make_rng(7)
    a = random_coefficients(rng, 20, 3)
    b = random_coefficients(rng, 20, 3)
    out = geometric_product_batch(a, b, 3)
    for i in range(20):
        expected = Multivector(3, a[i]) * Multivector(3, b[i])
        assert tuple(out[i].tolist()) == expected.coefficients


def test_product_table_is_fixed_and_exhaustive():
    table = product_table(2)
    assert len(table) == 16
    assert [(i, j) for i, j, _, _ in table] == [(i, j) for i in range(4) for j in range(4)]
    assert product_table(2) is table


def test_combine_is_coefficientwise():
    u = Multivector(1, [1, -1])
    v = Multivector(1, [1, 0])
    assert (u + v).coefficients == (-1, -1)


def test_order_mismatch_raises():
    with pytest.raises(DimensionMismatch):
        Multivector.zero(1) * Multivector.zero(2)
    with pytest.raises(DimensionMismatch):
        Multivector.zero(2) + Multivector.zero(3)


def test_construction_validates_length_and_domain():
    with pytest.raises(DimensionMismatch):
        Multivector(2, [1, 0, 0])
    with pytest.raises(ValueError):
        Multivector(1, [2, 0])
    mv = Multivector(2, [1, 0, -1, 0])
    assert mv.order == 2
    assert mv.coefficients == (1, 0, -1, 0)


def test_multivector_is_immutable_value():
    coeffs = np.array([1, 0, 0, 1], dtype=np.int8)
    mv = Multivector(2, coeffs)
    coeffs[0] = -1
    assert mv.coefficients[0] == 1
    arr = mv.to_array()
    arr[1] = 1
    assert mv.coefficients[1] == 0
    assert hash(mv) == hash(Multivector(2, [1, 0, 0, 1]))


def test_random_draws_all_three_values():
    mv = Multivector.random(6, make_rng(3))
    assert set(mv.coefficients) == {-1, 0, 1}


def test_grade_helpers_and_labels():
    assert [grade(b) for b in range(8)] == [0, 1, 1, 2, 1, 2, 2, 3]
    assert blade_labels(2) == ["1", "e0", "e1", "e01"]
    mv = Multivector(2, [1, -1, 1, -1])
    assert mv.grade_part(1).coefficients == (0, -1, 1, 0)
    assert str(mv) == "1 -e0 +e1 -e01"
    assert str(Multivector.zero(1)) == "0"


def test_sum_multivectors_folds_combine():
    items = [Multivector.scalar(1, 1)] * 4
    assert sum_multivectors(items, 1) == Multivector.scalar(1, 1)
    assert sum_multivectors([], 2) == Multivector.zero(2)


def test_non_integral_coefficients_are_rejected():
    with pytest.raises(ValueError):
        Multivector(1, [0.5, -0.7])
    with pytest.raises(ValueError):
        Multivector(2, np.array([1.0, 0.0, 0.25, 0.0]))
    assert Multivector(1, np.array([1.0, -1.0])).coefficients == (1, -1)
