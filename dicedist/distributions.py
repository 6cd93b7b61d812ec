import logging
import math
import typing

from dicedist.roll import DiceRollError, Roll

logger = logging.getLogger(__name__)


class ProbabilityMassFunction:
    """Distribution over a contiguous range of integers.

    Slot `i` of `probabilities` holds the probability of the value
    `offset + i`. Instances are immutable; every operation returns a new one.
    """

    __slots__ = ("_offset", "_probabilities")

    def __init__(self, offset: int, probabilities: typing.Iterable[float]) -> None:
        self._offset = offset
        self._probabilities = tuple(probabilities)

    @classmethod
    def from_die(cls, sides: int) -> "ProbabilityMassFunction":
        if sides < 1:
            raise DiceRollError("attempted to roll a die with %s faces" % sides)
        return cls(1, [1 / sides] * sides)

    @classmethod
    def from_roll(cls, roll: Roll) -> "ProbabilityMassFunction":
        dice = roll.iterate_dice()
        try:
            first = next(dice)
        except StopIteration:
            raise DiceRollError("'%s' has no dice to build a distribution from" % roll)

        die_pmfs = {first: cls.from_die(first)}
        result = die_pmfs[first].shift(roll.modifier)
        for sides in dice:
            if sides not in die_pmfs:
                die_pmfs[sides] = cls.from_die(sides)
            result = convolve(result, die_pmfs[sides])

        logger.debug("distribution of %s has %s outcomes", roll, len(result))
        return result

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def probabilities(self) -> typing.Tuple[float, ...]:
        return self._probabilities

    def __len__(self) -> int:
        return len(self._probabilities)

    def items(self) -> typing.Iterator[typing.Tuple[int, float]]:
        for i, probability in enumerate(self._probabilities):
            yield self._offset + i, probability

    def __iter__(self) -> typing.Iterator[typing.Tuple[int, float]]:
        return self.items()

    def convolve(self, other: "ProbabilityMassFunction") -> "ProbabilityMassFunction":
        return convolve(self, other)

    def __add__(self, other):
        if isinstance(other, ProbabilityMassFunction):
            return convolve(self, other)
        elif isinstance(other, int):
            return self.shift(other)
        return NotImplemented

    __radd__ = __add__

    def shift(self, delta: int) -> "ProbabilityMassFunction":
        return ProbabilityMassFunction(self._offset + delta, self._probabilities)

    def probability(self, value: int) -> float:
        i = value - self._offset
        if i < 0 or i >= len(self._probabilities):
            return 0.0
        return self._probabilities[i]

    def probability_table(self) -> typing.Dict[int, float]:
        return dict(self.items())

    def min(self) -> int:
        return self._offset

    def max(self) -> int:
        return self._offset + len(self._probabilities) - 1

    def mean(self) -> float:
        return sum(value * probability for value, probability in self.items())

    def __eq__(self, other) -> bool:
        if not isinstance(other, ProbabilityMassFunction):
            return NotImplemented
        return (
            self._offset == other._offset
            and self._probabilities == other._probabilities
        )

    def __hash__(self) -> int:
        return hash((self._offset, self._probabilities))

    def __repr__(self) -> str:
        return "ProbabilityMassFunction(%s, %r)" % (self._offset, self._probabilities)


def convolve(
    a: ProbabilityMassFunction, b: ProbabilityMassFunction
) -> ProbabilityMassFunction:
    """Distribution of the sum of two independent variables.

    The shorter operand bounds the inner sum. Each slot is summed with
    `math.fsum`, which is exactly rounded, so `convolve(a, b)` and
    `convolve(b, a)` agree bit for bit.
    """
    if len(a) == 0 or len(b) == 0:
        raise DiceRollError("cannot convolve an empty distribution")

    short, long_ = a.probabilities, b.probabilities
    if len(short) > len(long_):
        short, long_ = long_, short

    result = []
    for i in range(len(short) + len(long_) - 1):
        lo = max(0, i - len(long_) + 1)
        hi = min(i, len(short) - 1)
        result.append(math.fsum(short[j] * long_[i - j] for j in range(lo, hi + 1)))
    return ProbabilityMassFunction(a.offset + b.offset, result)
