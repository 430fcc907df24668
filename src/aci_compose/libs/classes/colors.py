from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

from rich.color import ColorSystem
from rich.style import Style

ColorFunc = Callable[[str], str]

DEFAULT_PALETTE: tuple[str, ...] = (
    "cyan",
    "yellow",
    "green",
    "red",
    "blue",
    "magenta",
    "bright_cyan",
    "bright_yellow",
    "bright_green",
    "bright_red",
    "bright_blue",
    "bright_magenta",
)


def make_color_func(
    color: str, color_system: ColorSystem | None = ColorSystem.STANDARD
) -> ColorFunc:
    style = Style(color=color)

    def colorize(text: str) -> str:
        return style.render(text, color_system=color_system)

    return colorize


def no_color(text: str) -> str:
    return text


@dataclass
class ColorCycle(Iterator[ColorFunc]):
    """Round-robin supplier of color functions.

    Each consumer gets its own cycle, so color assignment only depends on the
    order in which that consumer sees services.
    """

    palette: Sequence[str] = DEFAULT_PALETTE
    color_system: ColorSystem | None = ColorSystem.STANDARD
    _funcs: list[ColorFunc] = field(init=False, repr=False)
    _position: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if not self.palette:
            raise ValueError("Color palette must not be empty")
        self._funcs = [make_color_func(c, self.color_system) for c in self.palette]

    def __next__(self) -> ColorFunc:
        func = self._funcs[self._position]
        self._position = (self._position + 1) % len(self._funcs)
        return func

    def reset(self) -> None:
        self._position = 0


def default_color_cycle() -> ColorCycle:
    return ColorCycle()
