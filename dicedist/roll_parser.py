import logging
import os
import re
import typing

import lark

from dicedist.roll import Roll, RollParseError

logger = logging.getLogger(__name__)

# Longest first, so "/roll" is never mistaken for "/r" followed by "oll".
COMMAND_PREFIXES = ("/roll", "/r")

# Bounds on the work a single expression may ask for. MAX_DICE and
# MAX_OUTCOMES apply to the whole roll, MAX_SIDES to every die.
MAX_DICE = 100
MAX_SIDES = 1000
MAX_OUTCOMES = 2000

_DIGIT = re.compile(r"[0-9]")
_SIGN = re.compile(r"[+-]")
_COMMAND = re.compile(r"\s*/r(?:oll)?(?=[\s0-9dD+-]|$)")


@lark.v_args(inline=True)
class _RollItemApplier(lark.Transformer):
    """Applies each parsed roll item to the roll being built."""

    def __init__(self, roll: Roll, max_dice: int, max_sides: int) -> None:
        super().__init__()
        self.roll = roll
        self.max_dice = max_dice
        self.max_sides = max_sides

    def dice(
        self,
        sign: typing.Optional[lark.Token],
        count: typing.Optional[lark.Token],
        sides: lark.Token,
    ) -> Roll:
        n_dice = 1 if count is None else int(count)
        n_sides = int(sides)
        if sign == "-":
            raise RollParseError("cannot subtract dice: -%sd%s" % (n_dice, n_sides))
        if n_dice < 1:
            raise RollParseError("attempted to roll %s dice" % n_dice)
        if n_sides < 1:
            raise RollParseError("attempted to roll a die with %s faces" % n_sides)
        total_dice = self.roll.dice_count() + n_dice
        if total_dice > self.max_dice:
            raise RollParseError(
                "too many dice: %s (max %s)" % (total_dice, self.max_dice)
            )
        if n_sides > self.max_sides:
            raise RollParseError(
                "too many sides: %s (max %s)" % (n_sides, self.max_sides)
            )
        return self.roll.add_die_group(n_dice, n_sides)

    def modifier(self, sign: typing.Optional[lark.Token], value: lark.Token) -> Roll:
        delta = int(value)
        return self.roll.add_modifier(-delta if sign == "-" else delta)


_grammar_file = os.path.join(os.path.dirname(__file__), "roll.lark")
with open(_grammar_file) as _f:
    _grammar = lark.Lark(_f.read(), parser="lalr", maybe_placeholders=True)


def strip_command_prefix(text: str) -> str:
    text = text.strip()
    for prefix in COMMAND_PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix) :]
            break
    return text.strip()


def split_item(text: str) -> typing.Tuple[str, str]:
    """Splits the first roll item off of `text`.

    The item runs up to, but not including, the first `+` or `-` found after
    the item's first digit, so a sign leading the item stays with it. Returns
    `(item, rest)` with `item + rest == text`.
    """
    digit = _DIGIT.search(text)
    if digit is None:
        return text, ""
    sign = _SIGN.search(text, digit.end())
    if sign is None:
        return text, ""
    return text[: sign.start()], text[sign.start() :]


def split_items(text: str) -> typing.Iterator[str]:
    while text:
        item, text = split_item(text)
        yield item


def _apply_item(item: str, applier: _RollItemApplier) -> None:
    compact = "".join(item.split())
    if not _DIGIT.search(compact):
        raise RollParseError("no number in roll item '%s'" % item.strip())
    try:
        applier.transform(_grammar.parse(compact))
    except lark.exceptions.VisitError as e:
        raise e.orig_exc
    except lark.exceptions.UnexpectedInput:
        raise RollParseError("malformed roll item '%s'" % item.strip())


def is_roll_command(text: str) -> bool:
    """True if `text` starts with a roll command token followed by a roll."""
    return _COMMAND.match(text) is not None


def parse(
    text: str,
    max_dice: int = MAX_DICE,
    max_sides: int = MAX_SIDES,
    max_outcomes: int = MAX_OUTCOMES,
) -> Roll:
    """Parses a dice expression such as `/roll 2d6 + 1d4 - 1` into a Roll.

    Raises RollParseError if the text is not a valid expression, or if the
    roll exceeds the given bounds.
    """
    body = strip_command_prefix(text)
    if not body:
        raise RollParseError("empty roll")

    roll = Roll()
    applier = _RollItemApplier(roll, max_dice, max_sides)
    for item in split_items(body):
        logger.debug("roll item %r", item)
        _apply_item(item, applier)

    outcomes = roll.total_side_count() - roll.dice_count() + 1
    if outcomes > max_outcomes:
        raise RollParseError(
            "too many possible totals: %s (max %s)" % (outcomes, max_outcomes)
        )
    return roll
