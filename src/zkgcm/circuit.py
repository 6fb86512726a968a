"""Rank-1 constraint system builder with an embedded witness solver.

A circuit is a list of *wires* (entries of the witness vector) and a list
of *gates*.  Every gate is a rank-1 constraint

    A(w) * B(w) = C(w)

where A, B and C are linear combinations of witness entries over the
scalar field of BN254.  Wire 0 always carries the constant 1, so a
constant term is a coefficient on wire 0.

Signals flowing between gadgets are either plain ``int`` constants or a
:class:`LinearCombination`.  Constants fold at build time: arithmetic on
two constants never creates a wire, and multiplying by a constant is a
linear operation that creates no gate.  This is what makes a circuit
whose IV counter bytes or zero block are fixed cheaper than one where
they are inputs.

Every wire is created together with a *hint*, a function computing its
value from wires created before it.  Wires are therefore allocated in a
topological order of the data-flow graph and :meth:`Circuit.solve`
evaluates each exactly once before checking every gate.
"""

import logging
from collections import Counter
from contextlib import contextmanager
from typing import Callable, Iterable, Optional, Union

logger = logging.getLogger(__name__)

# Scalar field modulus of the BN254 (alt_bn128) curve.
P = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# Index of the constant-one wire.
ONE = 0


class UnsatisfiedConstraintError(ValueError):
    """No satisfying witness exists for the given inputs.

    Raised by :meth:`Circuit.solve` when a gate does not hold, and at build
    time when a gate over constants alone is false.
    """

    def __init__(self, index: Optional[int], label: str) -> None:
        where = "at build time" if index is None else f"#{index}"
        super().__init__(f"Constraint {where} ({label}) is not satisfied")
        self.index = index
        self.label = label


class LinearCombination:
    """A linear combination of witness wires, ``{wire_index: coefficient}``.

    Coefficients are reduced modulo :data:`P` and never zero.
    """

    __slots__ = ("terms",)

    def __init__(self, terms: dict) -> None:
        self.terms = terms

    def __repr__(self) -> str:
        body = " + ".join(f"{k}*w{i}" for i, k in sorted(self.terms.items()))
        return f"LinearCombination({body})"


Signal = Union[int, LinearCombination]


def is_constant(x: Signal) -> bool:
    return not isinstance(x, LinearCombination)


def _terms(x: Signal) -> dict:
    if isinstance(x, LinearCombination):
        return x.terms
    x %= P
    return {ONE: x} if x else {}


def _simplify(terms: dict) -> Signal:
    terms = {i: k for i, k in terms.items() if k}
    if not terms:
        return 0
    if terms.keys() == {ONE}:
        return terms[ONE]
    return LinearCombination(terms)


def _dot(values: list, terms: dict) -> int:
    return sum(values[i] * k for i, k in terms.items()) % P


def evaluate(values: list, x: Signal) -> int:
    """Value of signal *x* under a (partial) witness vector *values*."""
    if isinstance(x, LinearCombination):
        return _dot(values, x.terms)
    return x % P


class Witness:
    """A full, satisfying assignment of a :class:`Circuit`."""

    def __init__(self, circuit: "Circuit", values: list) -> None:
        self.circuit = circuit
        self.values = values

    def value(self, x: Signal) -> int:
        return evaluate(self.values, x)

    def output(self, name: str) -> list:
        """Return the values of the output group *name*."""
        try:
            signals = self.circuit.outputs[name]
        except KeyError:
            raise ValueError(f"Unknown output {name!r}") from None
        return [self.value(x) for x in signals]

    def output_bytes(self, name: str) -> bytes:
        return bytes(self.output(name))


class Circuit:
    """Builder for a fixed, fully unrolled constraint graph.

    Attributes:
        name:       Human-readable name used in logs.
        wire_count: Dimension of the witness vector (including wire 0).
        gates:      ``(a_terms, b_terms, c_terms, label)`` tuples.
        inputs:     ``name -> (first_wire, length, public)``.
        outputs:    ``name -> list of signals``.
    """

    def __init__(self, name: str = "circuit") -> None:
        self.name = name
        self.wire_count = 1
        self.gates: list = []
        self.inputs: dict = {}
        self.outputs: dict = {}
        self._hints: list = [(1, lambda values, assignment: [1])]
        self._scope: list = []

    # ------------------------------------------------------------------
    # Wires
    # ------------------------------------------------------------------

    def _new_wires(self, count: int, hint: Callable) -> list:
        first = self.wire_count
        self._hints.append((count, hint))
        self.wire_count += count
        return [LinearCombination({first + j: 1}) for j in range(count)]

    def input(self, name: str, length: int, *, public: bool = False) -> list:
        """Declare an input array of *length* field elements.

        The values are read from ``assignment[name]`` in :meth:`solve`.
        Inputs are not range-checked here; see :func:`zkgcm.primitives.input_bytes`.
        """
        if name in self.inputs:
            raise ValueError(f"Duplicate input name {name!r}")
        if length < 0:
            raise ValueError(f"Input length must be non-negative, got {length}")
        self.inputs[name] = (self.wire_count, length, public)
        return self._new_wires(length, lambda values, assignment: assignment[name])

    def output(self, name: str, signals: Iterable) -> None:
        if name in self.outputs:
            raise ValueError(f"Duplicate output name {name!r}")
        self.outputs[name] = list(signals)

    def witness(self, fn: Callable, *deps: Signal) -> LinearCombination:
        """Allocate one wire whose value is ``fn(*values_of(deps))``."""
        return self._new_wires(
            1, lambda values, _: [fn(*(evaluate(values, d) for d in deps))]
        )[0]

    def witness_many(self, count: int, fn: Callable, *deps: Signal) -> list:
        """Allocate *count* wires filled from the sequence ``fn(*values_of(deps))``."""
        return self._new_wires(
            count, lambda values, _: fn(*(evaluate(values, d) for d in deps))
        )

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    @contextmanager
    def scope(self, name: str):
        """Label every gate created inside the block with *name*."""
        self._scope.append(name)
        try:
            yield
        finally:
            self._scope.pop()

    @property
    def label(self) -> str:
        return self._scope[-1] if self._scope else "root"

    def gate(self, a: Signal, b: Signal, c: Signal) -> None:
        """Constrain ``a * b == c``."""
        if is_constant(a) or is_constant(b):
            residual = self.sub(c, self.mul(a, b))
            if is_constant(residual):
                if residual:
                    raise UnsatisfiedConstraintError(None, self.label)
                return
            self.gates.append(({}, {}, residual.terms, self.label))
            return
        self.gates.append((a.terms, b.terms, _terms(c), self.label))

    def assert_zero(self, x: Signal) -> None:
        self.gate(0, 0, x)

    def assert_equal(self, x: Signal, y: Signal) -> None:
        self.assert_zero(self.sub(x, y))

    def assert_bool(self, x: Signal) -> None:
        self.gate(x, x, x)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def linear(self, pairs: Iterable, constant: int = 0) -> Signal:
        """Return ``constant + sum(k * x for x, k in pairs)``."""
        acc = {ONE: constant % P}
        for x, k in pairs:
            if isinstance(x, LinearCombination):
                for i, v in x.terms.items():
                    acc[i] = (acc.get(i, 0) + v * k) % P
            else:
                acc[ONE] = (acc[ONE] + x * k) % P
        return _simplify(acc)

    def add(self, x: Signal, y: Signal) -> Signal:
        return self.linear(((x, 1), (y, 1)))

    def sub(self, x: Signal, y: Signal) -> Signal:
        return self.linear(((x, 1), (y, -1)))

    def scale(self, x: Signal, k: int) -> Signal:
        return self.linear(((x, k),))

    def sum(self, xs: Iterable) -> Signal:
        return self.linear((x, 1) for x in xs)

    def mul(self, x: Signal, y: Signal) -> Signal:
        if is_constant(x) and is_constant(y):
            return x * y % P
        if is_constant(x):
            return self.scale(y, x)
        if is_constant(y):
            return self.scale(x, y)
        z = self.witness(lambda u, v: u * v, x, y)
        self.gate(x, y, z)
        return z

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------

    def _validate_assignment(self, assignment: dict) -> None:
        unknown = set(assignment) - set(self.inputs)
        if unknown:
            raise ValueError(f"Unknown inputs: {', '.join(sorted(unknown))}")
        for name, (_, length, _) in self.inputs.items():
            if name not in assignment:
                raise ValueError(f"Missing input {name!r}")
            if len(assignment[name]) != length:
                raise ValueError(
                    f"Input {name!r} must have {length} elements, "
                    f"got {len(assignment[name])}"
                )

    def first_violation(self, values: list) -> Optional[int]:
        """Index of the first gate *values* violates, or None."""
        for index, (a, b, c, _) in enumerate(self.gates):
            if (_dot(values, a) * _dot(values, b) - _dot(values, c)) % P:
                return index
        return None

    def check(self, values: list) -> bool:
        """Return True if *values* is a satisfying witness vector."""
        if len(values) != self.wire_count:
            raise ValueError(
                f"Witness must have {self.wire_count} entries, got {len(values)}"
            )
        if values[ONE] != 1:
            return False
        return self.first_violation([v % P for v in values]) is None

    def solve(self, assignment: dict) -> Witness:
        """Compute the witness for *assignment* and verify every gate.

        Args:
            assignment: ``input name -> sequence of ints`` (``bytes`` work).

        Returns:
            The satisfying :class:`Witness`.

        Raises:
            ValueError:                 If inputs are missing or mis-sized.
            UnsatisfiedConstraintError: If no satisfying witness exists.
        """
        self._validate_assignment(assignment)
        values: list = []
        for count, hint in self._hints:
            result = [int(v) % P for v in hint(values, assignment)]
            if len(result) != count:
                raise RuntimeError(
                    f"Hint produced {len(result)} values, expected {count}"
                )
            values.extend(result)
        index = self.first_violation(values)
        if index is not None:
            logger.debug("%s: gate #%d (%s) violated", self.name, index, self.gates[index][3])
            raise UnsatisfiedConstraintError(index, self.gates[index][3])
        logger.debug("Solved %s: %d wires, %d gates", self.name, self.wire_count, len(self.gates))
        return Witness(self, values)

    # ------------------------------------------------------------------
    # Accounting
    # ------------------------------------------------------------------

    def stats(self) -> dict:
        """Wire and gate counts, with gates broken down by scope label."""
        return {
            "wires": self.wire_count,
            "gates": len(self.gates),
            "multiplicative_gates": sum(1 for a, *_ in self.gates if a),
            "by_scope": dict(Counter(label for *_, label in self.gates)),
        }

    def __repr__(self) -> str:
        return (
            f"Circuit(name={self.name!r}, wires={self.wire_count}, "
            f"gates={len(self.gates)})"
        )
