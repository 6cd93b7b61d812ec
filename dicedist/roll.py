import typing


class DiceRollError(ValueError):
    pass


class RollParseError(DiceRollError):
    pass


class Roll:
    """A set of dice being rolled, plus a flat modifier.

    Built incrementally with `add_die_group` and `add_modifier`, both of which
    return the roll itself so calls can be chained.
    """

    def __init__(self) -> None:
        self._counts: typing.List[int] = []
        self._sides: typing.List[int] = []
        self._modifier = 0

    def add_die_group(self, count: int, sides: int) -> "Roll":
        self._counts.append(count)
        self._sides.append(sides)
        return self

    def add_modifier(self, delta: int) -> "Roll":
        self._modifier += delta
        return self

    @property
    def modifier(self) -> int:
        return self._modifier

    @property
    def groups(self) -> typing.Tuple[typing.Tuple[int, int], ...]:
        return tuple(zip(self._counts, self._sides))

    def iterate_dice(self) -> typing.Iterator[int]:
        """Yields the number of sides of every individual die in the roll."""
        assert len(self._counts) == len(self._sides), (
            "roll has %s dice counts but %s side counts"
            % (len(self._counts), len(self._sides))
        )
        for count, sides in zip(self._counts, self._sides):
            for _ in range(count):
                yield sides

    def __iter__(self) -> typing.Iterator[int]:
        return self.iterate_dice()

    def total_side_count(self) -> int:
        return sum(self.iterate_dice())

    def dice_count(self) -> int:
        return sum(self._counts)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Roll):
            return NotImplemented
        return self.groups == other.groups and self.modifier == other.modifier

    def __repr__(self) -> str:
        terms = ["%sd%s" % group for group in self.groups]
        if not terms:
            return str(self.modifier)
        result = " + ".join(terms)
        if self.modifier > 0:
            result += " + %s" % self.modifier
        elif self.modifier < 0:
            result += " - %s" % -self.modifier
        return result
