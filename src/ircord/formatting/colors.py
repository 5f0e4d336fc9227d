"""IRC colour codes and deterministic nick colouring."""

from __future__ import annotations

# IRC control codes
COLOR = "\x03"
RESET = "\x0f"

# mIRC colour numbers
COLOR_CODES: dict[str, str] = {
    "white": "00",
    "black": "01",
    "dark_blue": "02",
    "dark_green": "03",
    "light_red": "04",
    "dark_red": "05",
    "magenta": "06",
    "orange": "07",
    "yellow": "08",
    "light_green": "09",
    "cyan": "10",
    "light_cyan": "11",
    "light_blue": "12",
    "light_magenta": "13",
    "gray": "14",
    "light_gray": "15",
}

NICK_COLORS: tuple[str, ...] = (
    "light_blue",
    "dark_blue",
    "light_red",
    "dark_red",
    "light_green",
    "dark_green",
    "magenta",
    "light_magenta",
    "orange",
    "yellow",
    "cyan",
    "light_cyan",
)


def nick_color(name: str, palette: tuple[str, ...] = NICK_COLORS) -> str:
    """Pick a palette colour for name: (codepoint of first char + length) mod palette size.

    Same name and palette always give the same colour. An empty name maps to palette[0].
    """
    if not palette:
        raise ValueError("palette must not be empty")
    if not name:
        return palette[0]
    return palette[(ord(name[0]) + len(name)) % len(palette)]


def wrap(color: str, text: str) -> str:
    """Wrap text in an IRC colour code followed by a reset."""
    code = COLOR_CODES.get(color)
    if code is None:
        return text
    return f"{COLOR}{code}{text}{RESET}"


def colorize(name: str, palette: tuple[str, ...] = NICK_COLORS) -> str:
    """Colour a nick for IRC display using nick_color."""
    return wrap(nick_color(name, palette), name)
