"""
가젯(gadget) 테스트.

각 가젯을 작은 독립 회로에 넣고, 네이티브 계산과 같은 값을 내는지,
그리고 계약 밖의 입력에서 회로가 불만족이 되는지 확인한다.
"""

import pytest

from giftcard import babyjub, gadgets
from giftcard.field import FR, ZERO, ONE, CURVE_ORDER
from giftcard.poseidon import poseidon
from giftcard.r1cs import ConstraintSystem


def _single_output(build, num_inputs):
    """입력 num_inputs개, 공개 출력 1개짜리 회로를 만든다."""
    cs = ConstraintSystem()
    out = cs.public_output("out")
    inputs = [cs.private_input(f"in{i}") for i in range(num_inputs)]
    cs.bind_output(out, build(cs, inputs))
    return cs, out


def _run(cs, out, inputs):
    values = cs.solve([FR(x % CURVE_ORDER) for x in inputs])
    return values[out], cs.is_satisfied(values)


# ─────────────────────────────────────────────────────────────────────
# poseidon
# ─────────────────────────────────────────────────────────────────────

class TestPoseidonGadget:
    """회로 내 해시 = 네이티브 해시."""

    @pytest.mark.parametrize("inputs", [[5], [5, 7], [1, 2, 3]])
    def test_matches_native(self, inputs):
        cs, out = _single_output(lambda cs, xs: gadgets.poseidon(cs, xs), len(inputs))
        value, ok = _run(cs, out, inputs)
        assert ok is True
        assert value == poseidon(inputs)

    def test_constraint_count_t3(self):
        """S-box 당 3개: (8·3 + 57)·3 = 243, 출력 고정 1개."""
        cs = ConstraintSystem()
        a = cs.private_input("a")
        b = cs.private_input("b")
        gadgets.poseidon(cs, [a, b])
        assert cs.num_constraints == 244

    def test_tampered_output(self):
        cs, out = _single_output(lambda cs, xs: gadgets.poseidon(cs, xs), 2)
        values = cs.solve([FR(5), FR(7)])
        values[out] = values[out] + ONE
        assert cs.is_satisfied(values) is False

    def test_rejects_bad_arity(self):
        cs = ConstraintSystem()
        with pytest.raises(ValueError):
            gadgets.poseidon(cs, [])


# ─────────────────────────────────────────────────────────────────────
# num2bits / less_than
# ─────────────────────────────────────────────────────────────────────

class TestNum2Bits:
    """비트 분해 테스트."""

    def _circuit(self, n):
        cs = ConstraintSystem()
        x = cs.private_input("x")
        bits = gadgets.num2bits(cs, x, n)
        return cs, bits

    def test_in_range(self):
        cs, bits = self._circuit(8)
        values = cs.solve([FR(200)])
        assert cs.is_satisfied(values) is True
        assert [int(b.evaluate(values)) for b in bits] == [0, 0, 0, 1, 0, 0, 1, 1]

    def test_max_value(self):
        cs, _ = self._circuit(8)
        assert cs.is_satisfied(cs.solve([FR(255)])) is True

    def test_out_of_range(self):
        cs, _ = self._circuit(8)
        assert cs.is_satisfied(cs.solve([FR(256)])) is False

    def test_field_negative_out_of_range(self):
        cs, _ = self._circuit(8)
        assert cs.is_satisfied(cs.solve([FR(CURVE_ORDER - 1)])) is False

    def test_non_boolean_bit_rejected(self):
        """비트 배선에 2를 넣으면 b·(1−b)=0 이 깨진다."""
        cs, bits = self._circuit(2)
        values = cs.solve([FR(2)])
        # 2 = 0·1 + 1·2  →  bits = [0, 1]. 재조합 값이 같은 [2, 0] 으로 조작
        values[list(bits[0].terms)[0]] = FR(2)
        values[list(bits[1].terms)[0]] = ZERO
        assert cs.is_satisfied(values) is False


class TestLessThan:
    """비교기 테스트 (n = 8)."""

    def _circuit(self):
        return _single_output(lambda cs, xs: gadgets.less_than(cs, xs[0], xs[1], 8), 2)

    @pytest.mark.parametrize("a,b,expected", [
        (3, 5, 1),
        (0, 1, 1),
        (5, 5, 0),
        (6, 5, 0),
        (0, 255, 1),
        (255, 0, 0),
    ])
    def test_ordering(self, a, b, expected):
        cs, out = self._circuit()
        value, ok = _run(cs, out, [a, b])
        assert ok is True
        assert value == FR(expected)

    def test_rejects_wide_comparator(self):
        cs = ConstraintSystem()
        a = cs.private_input("a")
        with pytest.raises(ValueError):
            gadgets.less_than(cs, a, a, 253)


# ─────────────────────────────────────────────────────────────────────
# is_zero / select
# ─────────────────────────────────────────────────────────────────────

class TestIsZero:
    """영 판정 테스트."""

    def _circuit(self):
        return _single_output(lambda cs, xs: gadgets.is_zero(cs, xs[0]), 1)

    def test_zero(self):
        cs, out = self._circuit()
        value, ok = _run(cs, out, [0])
        assert ok is True
        assert value == ONE

    def test_nonzero(self):
        cs, out = self._circuit()
        value, ok = _run(cs, out, [7])
        assert ok is True
        assert value == ZERO

    def test_claiming_zero_for_nonzero_fails(self):
        cs, out = self._circuit()
        values = cs.solve([FR(7)])
        # 0인 배선을 모두 1로 조작해도 x·out = 0 이 깨진다
        for wire in range(len(values)):
            if values[wire] == ZERO:
                values[wire] = ONE
        assert cs.is_satisfied(values) is False


class TestSelect:
    """대수적 선택 테스트."""

    def _circuit(self):
        def build(cs, xs):
            bit, when_zero, when_one = xs
            gadgets.assert_bool(cs, bit)
            return gadgets.select(cs, bit, when_zero, when_one)
        return _single_output(build, 3)

    def test_bit_zero(self):
        cs, out = self._circuit()
        value, ok = _run(cs, out, [0, 11, 22])
        assert ok is True
        assert value == FR(11)

    def test_bit_one(self):
        cs, out = self._circuit()
        value, ok = _run(cs, out, [1, 11, 22])
        assert ok is True
        assert value == FR(22)

    def test_non_boolean_bit(self):
        cs, out = self._circuit()
        _, ok = _run(cs, out, [2, 11, 22])
        assert ok is False


# ─────────────────────────────────────────────────────────────────────
# fixed_base_mul
# ─────────────────────────────────────────────────────────────────────

class TestFixedBaseMul:
    """고정 기저 스칼라 곱 (16비트 스칼라로 축소)."""

    N_BITS = 16

    @pytest.fixture(scope="class")
    def circuit(self):
        cs = ConstraintSystem()
        out_x = cs.public_output("x")
        out_y = cs.public_output("y")
        scalar = cs.private_input("scalar")
        x, y = gadgets.fixed_base_mul(cs, scalar, babyjub.BASE8, self.N_BITS)
        cs.bind_output(out_x, x)
        cs.bind_output(out_y, y)
        return cs

    @pytest.mark.parametrize("scalar", [0, 1, 2, 12345, (1 << 16) - 1])
    def test_matches_native(self, circuit, scalar):
        values = circuit.solve([FR(scalar)])
        assert circuit.is_satisfied(values) is True
        point = tuple(circuit.public_values(values))
        assert point == babyjub.mul(babyjub.BASE8, scalar)
        assert babyjub.is_on_curve(point)

    def test_scalar_out_of_range(self, circuit):
        values = circuit.solve([FR(1 << 16)])
        assert circuit.is_satisfied(values) is False

    def test_constraint_count(self, circuit):
        """비트 분해 (n + 1) + 비트당 5개 + 출력 2개."""
        assert circuit.num_constraints == (self.N_BITS + 1) + 5 * self.N_BITS + 2
