"""Unit tests for the roll model."""

import pytest

from dicedist.roll import Roll


class TestBuilder:
    def test_empty_roll(self) -> None:
        roll = Roll()
        assert roll.groups == ()
        assert roll.modifier == 0
        assert list(roll.iterate_dice()) == []

    def test_chaining_returns_same_roll(self) -> None:
        roll = Roll()
        assert roll.add_die_group(2, 6).add_modifier(3) is roll

    def test_modifiers_accumulate(self) -> None:
        roll = Roll().add_modifier(3).add_modifier(-5).add_modifier(1)
        assert roll.modifier == -1

    def test_groups_keep_insertion_order(self) -> None:
        roll = Roll().add_die_group(2, 6).add_die_group(1, 4)
        assert roll.groups == ((2, 6), (1, 4))


class TestIterateDice:
    def test_one_entry_per_die(self) -> None:
        roll = Roll().add_die_group(2, 6).add_die_group(3, 4).add_die_group(1, 20)
        assert list(roll.iterate_dice()) == [6, 6, 4, 4, 4, 20]

    def test_restartable(self) -> None:
        roll = Roll().add_die_group(2, 8)
        first = roll.iterate_dice()
        next(first)
        assert list(roll.iterate_dice()) == [8, 8]
        assert list(first) == [8]
        assert list(roll) == [8, 8]

    def test_zero_count_group_contributes_nothing(self) -> None:
        roll = Roll().add_die_group(0, 6).add_die_group(1, 4)
        assert list(roll.iterate_dice()) == [4]

    def test_mismatched_sequences_are_a_defect(self) -> None:
        roll = Roll().add_die_group(1, 6)
        roll._sides.append(4)
        with pytest.raises(AssertionError):
            list(roll.iterate_dice())

    def test_total_side_count(self) -> None:
        roll = Roll().add_die_group(2, 6).add_die_group(1, 4)
        assert roll.total_side_count() == 16

    def test_dice_count(self) -> None:
        roll = Roll().add_die_group(2, 6).add_die_group(3, 4)
        assert roll.dice_count() == 5


class TestEqualityAndRepr:
    def test_equal_rolls(self) -> None:
        assert Roll().add_die_group(1, 4).add_modifier(2) == Roll().add_die_group(
            1, 4
        ).add_modifier(2)

    def test_modifier_matters(self) -> None:
        assert Roll().add_die_group(1, 4) != Roll().add_die_group(1, 4).add_modifier(1)

    def test_group_order_matters(self) -> None:
        a = Roll().add_die_group(1, 4).add_die_group(2, 6)
        b = Roll().add_die_group(2, 6).add_die_group(1, 4)
        assert a != b

    def test_repr(self) -> None:
        roll = Roll().add_die_group(2, 6).add_die_group(1, 4).add_modifier(-3)
        assert repr(roll) == "2d6 + 1d4 - 3"

    def test_repr_positive_modifier(self) -> None:
        assert repr(Roll().add_die_group(1, 20).add_modifier(5)) == "1d20 + 5"

    def test_repr_constant_only(self) -> None:
        assert repr(Roll().add_modifier(-2)) == "-2"
