import io
import typing

import pandas
import plotly.express as px

from dicedist.distributions import ProbabilityMassFunction
from dicedist.roll import Roll


class ImageResult:
    def __init__(self, data: bytes) -> None:
        self.data = data

    def __repr__(self) -> str:
        return ""


def format_number(value: float) -> str:
    result = f"{float(value):.2f}"
    if result.endswith(".00"):
        result = result[:-3]
    return result


def format_percentage(value: float) -> str:
    return "%s%%" % format_number(value * 100)


def summary(roll: Roll, pmf: ProbabilityMassFunction) -> str:
    return "**Roll:** %s\n**Min:** %s  **Max:** %s  **Mean:** %s" % (
        roll,
        pmf.min(),
        pmf.max(),
        format_number(pmf.mean()),
    )


def as_table(pmf: ProbabilityMassFunction) -> str:
    rows = [(str(value), format_percentage(p)) for value, p in pmf.items()]
    value_width = max([len("value")] + [len(value) for value, _ in rows])
    result = "```\n" + "%*s  %s\n" % (value_width, "value", "probability")
    for value, p in rows:
        result += "%*s  %s\n" % (value_width, value, p)
    return result + "```"


def plot(pmfs: typing.Mapping[str, ProbabilityMassFunction]) -> ImageResult:
    """Overlaid bar chart of each labelled distribution, as a PNG."""
    possible_values = sorted({value for pmf in pmfs.values() for value, _ in pmf})
    columns: typing.Dict[str, typing.List[typing.Any]] = {
        "value": [str(x) for x in possible_values]
    }
    for label, pmf in pmfs.items():
        columns[label] = [pmf.probability(x) for x in possible_values]

    data = pandas.DataFrame(columns)
    fig = px.bar(data, x="value", y=list(pmfs), barmode="overlay")
    fig.update_xaxes(title_text="value")
    fig.update_yaxes(title_text="probability", tickformat="%")
    stream = io.BytesIO()
    fig.write_image(file=stream, format="png")
    return ImageResult(stream.getvalue())
