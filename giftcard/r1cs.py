"""
R1CS 제약 시스템 (Rank-1 Constraint System)
=============================================

계산을 배선(wire)과 곱셈 제약으로 표현하는 산술화(arithmetization) 계층.

**R1CS 제약 구조**:
  각 제약은 세 개의 선형결합(linear combination) A, B, C로 구성:

    <A, w> · <B, w> = <C, w>

  - w: 위트니스 벡터 (w[0] = 1 은 상수 배선)
  - 덧셈과 상수배는 선형결합 안에서 무료로 처리된다
  - 곱셈 하나마다 새 배선과 제약이 하나씩 생긴다

**배선 배치 (wire layout)**:
  | 구간            | 인덱스                 |
  |-----------------|------------------------|
  | 상수 1          | 0                      |
  | 공개 출력       | 1 .. n_pub             |
  | 비공개 입력     | n_pub+1 .. n_pub+n_prv |
  | 중간 배선       | 그 이후                |

**위트니스 힌트**:
  중간 배선의 값은 등록 순서대로 실행되는 힌트 함수가 계산한다.
  힌트는 "값을 계산"만 할 뿐이며, 정당성은 오직 제약이 보장한다.
  따라서 solve()는 항상 끝까지 실행되고, 만족 여부는 is_satisfied()가 판정한다.

사용 예시:
    >>> cs = ConstraintSystem()
    >>> out = cs.public_output("y")
    >>> x = cs.private_input("x")
    >>> x2 = cs.mul(x, x)
    >>> cs.bind_output(out, x2 + x + 5)
    >>> values = cs.solve([FR(3)])
    >>> cs.is_satisfied(values)   # True
"""

from giftcard.field import FR, ZERO, ONE, CURVE_ORDER, to_fr


class LinearCombination:
    """배선들의 선형결합 Σ coeff_i · w_i.

    속성:
        terms: 배선 인덱스 → FR 계수 딕셔너리 (계수 0인 항은 저장하지 않음)

    연산자는 항상 새 객체를 반환한다 (불변 객체처럼 다룬다).
    """

    def __init__(self, terms=None):
        self.terms = {}
        if terms:
            for wire, coeff in terms.items():
                coeff = to_fr(coeff)
                if coeff != ZERO:
                    self.terms[wire] = coeff

    @classmethod
    def constant(cls, value):
        """상수 선형결합: value · w[0]."""
        return cls({ConstraintSystem.ONE: value})

    @classmethod
    def wire(cls, index):
        """단일 배선 선형결합: 1 · w[index]."""
        return cls({index: ONE})

    @classmethod
    def combine(cls, pairs):
        """Σ coeff · lc 를 한 번에 계산한다.

        MDS 행렬 곱처럼 여러 선형결합을 섞을 때 중간 객체 생성을 줄인다.

        Args:
            pairs: (계수, LinearCombination) 튜플의 iterable
        """
        terms = {}
        for coeff, lc in pairs:
            coeff = to_fr(coeff)
            for wire, c in lc.terms.items():
                terms[wire] = terms.get(wire, ZERO) + coeff * c
        return cls(terms)

    def is_constant(self):
        return all(wire == ConstraintSystem.ONE for wire in self.terms)

    def evaluate(self, values):
        """위트니스 값 리스트 위에서 선형결합을 평가한다."""
        total = ZERO
        for wire, coeff in self.terms.items():
            total = total + coeff * values[wire]
        return total

    def __add__(self, other):
        other = as_lc(other)
        terms = dict(self.terms)
        for wire, coeff in other.terms.items():
            terms[wire] = terms.get(wire, ZERO) + coeff
        return LinearCombination(terms)

    __radd__ = __add__

    def __neg__(self):
        return LinearCombination({w: -c for w, c in self.terms.items()})

    def __sub__(self, other):
        return self + (-as_lc(other))

    def __rsub__(self, other):
        return as_lc(other) + (-self)

    def __mul__(self, scalar):
        if isinstance(scalar, LinearCombination):
            raise TypeError("선형결합끼리의 곱은 ConstraintSystem.mul()을 사용하세요")
        scalar = to_fr(scalar)
        return LinearCombination({w: c * scalar for w, c in self.terms.items()})

    __rmul__ = __mul__

    def __repr__(self):
        parts = [f"{int(c)}·w{w}" for w, c in sorted(self.terms.items())]
        return "LC(" + (" + ".join(parts) if parts else "0") + ")"


def as_lc(value):
    """LinearCombination, 정수, FR 값을 선형결합으로 변환한다."""
    if isinstance(value, LinearCombination):
        return value
    return LinearCombination.constant(value)


class Constraint:
    """R1CS 제약 하나: <A, w> · <B, w> = <C, w>."""

    def __init__(self, a, b, c):
        self.a = as_lc(a)
        self.b = as_lc(b)
        self.c = as_lc(c)

    def check(self, values):
        """제약이 만족되는지 확인한다.

        Args:
            values: 전체 위트니스 값 리스트 (FR)

        Returns:
            bool: 제약 만족 여부
        """
        return self.a.evaluate(values) * self.b.evaluate(values) == self.c.evaluate(values)


class ConstraintSystem:
    """R1CS 회로 빌더.

    배선 할당, 제약 추가, 위트니스 풀이, 만족 여부 판정을 담당한다.
    한 번 구성된 제약 집합은 위트니스와 무관하게 고정된다.

    속성:
        constraints: Constraint 리스트
        labels: 배선 이름 리스트 (인덱스 = 배선 번호)
        public_outputs: 공개 출력 배선 인덱스 리스트
        private_inputs: 비공개 입력 배선 인덱스 리스트
    """

    ONE = 0

    def __init__(self):
        self.constraints = []
        self.labels = ["one"]
        self.public_outputs = []
        self.private_inputs = []
        self._hints = []
        self._bound_outputs = set()

    @property
    def num_wires(self):
        return len(self.labels)

    @property
    def num_constraints(self):
        return len(self.constraints)

    def _new_wire(self, name):
        self.labels.append(name or f"w{len(self.labels)}")
        return len(self.labels) - 1

    # ─── 배선 할당 ───

    def public_output(self, name):
        """공개 출력 배선을 할당한다. 다른 모든 배선보다 먼저 호출해야 한다.

        Returns:
            int: 배선 인덱스 (값은 bind_output()으로 연결)
        """
        if self.num_wires != 1 + len(self.public_outputs):
            raise ValueError("공개 출력은 다른 배선보다 먼저 할당해야 합니다")
        wire = self._new_wire(name)
        self.public_outputs.append(wire)
        return wire

    def private_input(self, name):
        """비공개 입력 배선을 할당한다. 중간 배선보다 먼저 호출해야 한다."""
        if self.num_wires != 1 + len(self.public_outputs) + len(self.private_inputs):
            raise ValueError("비공개 입력은 중간 배선보다 먼저 할당해야 합니다")
        wire = self._new_wire(name)
        self.private_inputs.append(wire)
        return LinearCombination.wire(wire)

    def alloc(self, hint, name=None):
        """힌트로 값이 계산되는 중간 배선을 할당한다.

        할당만으로는 아무 제약도 생기지 않는다. 호출자가 제약을 추가해야 한다.

        Args:
            hint: values 리스트를 받아 FR 값을 반환하는 함수

        Returns:
            LinearCombination: 새 배선
        """
        wire = self._new_wire(name)
        self._hints.append((wire, hint))
        return LinearCombination.wire(wire)

    # ─── 제약 추가 ───

    def enforce(self, a, b, c):
        """제약 a · b = c 를 추가한다."""
        self.constraints.append(Constraint(a, b, c))

    def enforce_equal(self, a, b):
        """제약 a · 1 = b 를 추가한다."""
        self.enforce(a, ONE, b)

    def mul(self, a, b, name=None):
        """곱셈 배선 out = a · b 를 할당하고 제약을 추가한다."""
        a, b = as_lc(a), as_lc(b)
        out = self.alloc(lambda v: a.evaluate(v) * b.evaluate(v), name)
        self.enforce(a, b, out)
        return out

    def materialize(self, lc, name=None):
        """선형결합을 새 배선 하나로 고정한다 (lc · 1 = out)."""
        lc = as_lc(lc)
        out = self.alloc(lc.evaluate, name)
        self.enforce_equal(lc, out)
        return out

    def bind_output(self, wire, lc):
        """공개 출력 배선의 값을 선형결합 lc로 연결한다."""
        if wire not in self.public_outputs:
            raise ValueError(f"공개 출력 배선이 아닙니다: {wire}")
        if wire in self._bound_outputs:
            raise ValueError(f"이미 연결된 공개 출력입니다: {self.labels[wire]}")
        lc = as_lc(lc)
        self._hints.append((wire, lc.evaluate))
        self._bound_outputs.add(wire)
        self.enforce_equal(lc, LinearCombination.wire(wire))

    # ─── 위트니스 ───

    def solve(self, inputs):
        """비공개 입력에서 전체 위트니스 값을 계산한다.

        힌트를 등록 순서대로 한 번씩 실행한다 (데이터 의존 분기 없음).

        Args:
            inputs: 비공개 입력 순서대로의 값 리스트

        Returns:
            list[FR]: 길이 num_wires의 위트니스 값
        """
        if len(inputs) != len(self.private_inputs):
            raise ValueError(
                f"비공개 입력 수가 맞지 않습니다: {len(inputs)} != {len(self.private_inputs)}"
            )
        unbound = [self.labels[w] for w in self.public_outputs if w not in self._bound_outputs]
        if unbound:
            raise ValueError(f"연결되지 않은 공개 출력: {unbound}")

        values = [None] * self.num_wires
        values[self.ONE] = ONE
        for wire, value in zip(self.private_inputs, inputs):
            values[wire] = to_fr(value)
        for wire, hint in self._hints:
            values[wire] = hint(values)
        return values

    def is_satisfied(self, values):
        """모든 제약이 만족되는지 확인한다. 실패한 제약은 알려주지 않는다."""
        return all(constraint.check(values) for constraint in self.constraints)

    def public_values(self, values):
        return [values[wire] for wire in self.public_outputs]

    # ─── 내보내기 ───

    def to_matrices(self):
        """조밀(dense) A, B, C 행렬을 반환한다.

        행 = 제약, 열 = 배선. groth16 QAP 변환 입력과 같은 배치이다.
        배선 수가 큰 회로에서는 메모리를 많이 사용하므로 작은 회로에만 쓴다.

        Returns:
            tuple: (A, B, C), 각각 int 2차원 리스트 (mod CURVE_ORDER)
        """
        matrices = ([], [], [])
        for constraint in self.constraints:
            for matrix, lc in zip(matrices, (constraint.a, constraint.b, constraint.c)):
                row = [0] * self.num_wires
                for wire, coeff in lc.terms.items():
                    row[wire] = int(coeff)
                matrix.append(row)
        return matrices

    def to_dict(self):
        """설정 의식(setup ceremony) 도구가 소비하는 희소(sparse) 회로 설명."""
        def sparse(lc):
            return {str(wire): str(int(coeff)) for wire, coeff in sorted(lc.terms.items())}

        return {
            "prime": str(CURVE_ORDER),
            "nWires": self.num_wires,
            "nPubOutputs": len(self.public_outputs),
            "nPrvInputs": len(self.private_inputs),
            "nConstraints": self.num_constraints,
            "labels": list(self.labels),
            "constraints": [
                [sparse(c.a), sparse(c.b), sparse(c.c)] for c in self.constraints
            ],
        }
