import asyncio
import concurrent.futures
import functools
import io
import logging
import os
import shutil
import sys
import typing

import discord
import discord.ext.commands as commands
import yaml

import dicedist.combinatorics as combinatorics
import dicedist.rendering as rendering
import dicedist.roll_parser as roll_parser
from dicedist.distributions import ProbabilityMassFunction
from dicedist.roll import DiceRollError, Roll, RollParseError

logger = logging.getLogger("dicedist")

MAX_MESSAGE_LENGTH = 2000

DEFAULT_SETTINGS: typing.Dict[str, typing.Any] = {
    "command_prefix": "!",
    "timeout": 10,
    "max_workers": 2,
    "max_dice": roll_parser.MAX_DICE,
    "max_sides": roll_parser.MAX_SIDES,
    "max_outcomes": roll_parser.MAX_OUTCOMES,
    "log_level": "INFO",
}

_intents = discord.Intents.default()
_intents.message_content = True

client = commands.Bot(
    command_prefix=DEFAULT_SETTINGS["command_prefix"],
    intents=_intents,
    activity=discord.Game(name="/roll 2d6+3"),
    status=discord.Status.idle,
)

settings: typing.Dict[str, typing.Any] = dict(DEFAULT_SETTINGS)

_executor: typing.Optional[concurrent.futures.ProcessPoolExecutor] = None


def limits() -> typing.Dict[str, int]:
    return {
        "max_dice": settings["max_dice"],
        "max_sides": settings["max_sides"],
        "max_outcomes": settings["max_outcomes"],
    }


def distribution_of(
    text: str, **bounds: int
) -> typing.Tuple[Roll, ProbabilityMassFunction]:
    roll = roll_parser.parse(text, **bounds)
    return roll, ProbabilityMassFunction.from_roll(roll)


def labelled_distributions(
    text: str, **bounds: int
) -> typing.Dict[str, ProbabilityMassFunction]:
    """Distributions of the `;`-separated rolls in `text`, by unique label."""
    pmfs: typing.Dict[str, ProbabilityMassFunction] = {}
    for expr in text.split(";"):
        if not expr.strip():
            continue
        roll, pmf = distribution_of(expr, **bounds)
        label = str(roll)
        n = 2
        while label in pmfs:
            label = "%s (%s)" % (roll, n)
            n += 1
        pmfs[label] = pmf
    if not pmfs:
        raise RollParseError("empty roll")
    return pmfs


def q_binomial_text(n: str, k: str, q: str) -> str:
    try:
        return str(combinatorics.q_binomial(int(n), int(k), int(q)))
    except ValueError as e:
        raise DiceRollError(e.args[0])


def _get_executor() -> concurrent.futures.ProcessPoolExecutor:
    global _executor
    if _executor is None:
        _executor = concurrent.futures.ProcessPoolExecutor(
            max_workers=settings["max_workers"]
        )
    return _executor


def _recycle_executor() -> None:
    """Stops every worker process, abandoning whatever it is computing."""
    global _executor
    stale, _executor = _executor, None
    if stale is None:
        return
    # ProcessPoolExecutor has no public way to stop a task that is running.
    for process in list((stale._processes or {}).values()):
        process.terminate()
    stale.shutdown(wait=False, cancel_futures=True)


def _shutdown_executor() -> None:
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=True)
        _executor = None


async def _compute(
    fn: typing.Callable[..., typing.Any], *args, **kwargs
) -> typing.Any:
    loop = asyncio.get_running_loop()
    call = functools.partial(fn, *args, **kwargs)
    try:
        future = loop.run_in_executor(_get_executor(), call)
    except concurrent.futures.BrokenExecutor:
        logger.warning("worker pool is broken, starting a new one")
        _recycle_executor()
        future = loop.run_in_executor(_get_executor(), call)
    return await future


async def _guarded(
    channel: discord.abc.Messageable, work: typing.Awaitable[None]
) -> None:
    try:
        await asyncio.wait_for(work, timeout=settings["timeout"])
    except asyncio.TimeoutError:
        _recycle_executor()
        await channel.send("Your roll took too long to evaluate. Sorry!")
    except concurrent.futures.BrokenExecutor:
        await channel.send("Your roll was interrupted. Please try again.")
    except DiceRollError as e:
        await channel.send("Error in input: %s" % e.args[0])
    except Exception:
        logger.exception("unhandled error while evaluating a roll")
        try:
            await channel.send("An internal error occured. Sorry!")
        except discord.DiscordException:
            pass
        raise


async def reply_distribution(channel: discord.abc.Messageable, text: str) -> None:
    roll, pmf = await _compute(distribution_of, text, **limits())
    message = rendering.summary(roll, pmf) + "\n" + rendering.as_table(pmf)
    if len(message) <= MAX_MESSAGE_LENGTH:
        await channel.send(message)
        return

    image = await _compute(rendering.plot, {str(roll): pmf})
    await channel.send(
        rendering.summary(roll, pmf),
        file=discord.File(io.BytesIO(image.data), filename="distribution.png"),
    )


@client.event
async def on_ready():
    logger.info("logged in as %s", client.user)


@client.event
async def on_message(message: discord.Message):
    if message.author == client.user:
        return

    if roll_parser.is_roll_command(message.content):
        await _guarded(
            message.channel, reply_distribution(message.channel, message.content)
        )
        return

    await client.process_commands(message)


@client.command(
    brief="probability distribution of a roll",
    description="""!dist <expr>

Parameters:
    expr - A sum of dice groups and flat modifiers, e.g. 2d6 + 1d4 - 1.

Result:
    Prints the minimum, maximum and mean of the roll's total, followed by
    the exact probability of every attainable total.

    Messages starting with /roll or /r are treated the same way.
""",
)
async def dist(ctx: commands.Context, *args: str):
    await _guarded(ctx, reply_distribution(ctx, " ".join(args)))


@client.command(
    brief="plot roll distributions",
    description="""!plot <expr>[; <expr>...]

Parameters:
    expr - One or more rolls, separated by semicolons.

Result:
    Produces a graph comparing the probability distributions
    of all the given rolls.

Examples:
    !plot 1d20; 3d6
""",
)
async def plot(ctx: commands.Context, *args: str):
    async def plot_impl():
        pmfs = await _compute(labelled_distributions, " ".join(args), **limits())
        image = await _compute(rendering.plot, pmfs)
        await ctx.send(
            file=discord.File(io.BytesIO(image.data), filename="distribution.png")
        )

    await _guarded(ctx, plot_impl())


@client.command(
    brief="q-binomial coefficient",
    description="""!qbinom <n> <k> <q>

Result:
    Computes the Gaussian binomial coefficient [n choose k]_q exactly.
""",
)
async def qbinom(ctx: commands.Context, n: str, k: str, q: str):
    async def qbinom_impl():
        result = await _compute(q_binomial_text, n, k, q)
        if len(result) <= MAX_MESSAGE_LENGTH:
            await ctx.send(result)
        else:
            await ctx.send(
                file=discord.File(io.BytesIO(result.encode()), filename="qbinom.txt")
            )

    await _guarded(ctx, qbinom_impl())


def load_settings(path: str) -> typing.Dict[str, typing.Any]:
    with open(path) as f:
        loaded = yaml.safe_load(f) or {}
    result = dict(DEFAULT_SETTINGS)
    result.update(loaded)
    return result


def main(argv: typing.List[str] = sys.argv) -> int:
    if not os.path.exists("settings.yaml"):
        shutil.copy(
            os.path.join(os.path.dirname(__file__), "settings.default.yaml"),
            "settings.yaml",
        )
        print(
            "settings.yaml not detected!"
            " A default one has been provided."
            " Please edit that file and re-run this program."
        )
        return 1

    global settings
    settings = load_settings("settings.yaml")

    discord.utils.setup_logging(level=getattr(logging, settings["log_level"].upper()))
    client.command_prefix = settings["command_prefix"]
    try:
        client.run(settings["token"], log_handler=None)
    finally:
        _shutdown_executor()
    return 0


if __name__ == "__main__":
    sys.exit(main())
