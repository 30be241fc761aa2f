"""
Engine Option Declarations

Parses the 'option' lines an engine sends during the handshake:

    option name Move Overhead type spin default 10 min 0 max 5000
    option name Clear Hash type button
    option name Style type combo default Normal var Solid var Normal var Risky

Option names may contain spaces, so the name runs until the literal token
'type'. From there every known key takes the token after it as its
value; unknown tokens are skipped one at a time, so an empty default or
an unfamiliar flag leaves the keys after it intact.

Reference:
    UCI Protocol: https://www.chessprogramming.org/UCI
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from chess_uci.errors import InvalidOptionValue, MalformedOption


class OptionType(Enum):
    """
    Kind of engine option.

        - CHECK: boolean, "true" or "false"
        - SPIN: integer within [min, max]
        - COMBO: one of a fixed list of strings
        - BUTTON: trigger with no value
        - STRING: free text
    """
    CHECK = "check"
    SPIN = "spin"
    COMBO = "combo"
    BUTTON = "button"
    STRING = "string"


@dataclass(frozen=True)
class Option:
    """
    An option declared by the engine.

    Attributes:
        name: Option name, may contain spaces (case-sensitive)
        type: Kind of option
        default: Default value as sent by the engine ("" if none)
        min: Lower bound (spin options only)
        max: Upper bound (spin options only)
        vars: Allowed values in declaration order (combo options only)
    """
    name: str
    type: OptionType
    default: str = ""
    min: Optional[int] = None
    max: Optional[int] = None
    vars: Tuple[str, ...] = field(default_factory=tuple)

    def check_value(self, value: str) -> str:
        """
        Validate a value for 'setoption' against this declaration.

        Args:
            value: Value the caller wants to send

        Returns:
            The value unchanged

        Raises:
            InvalidOptionValue: If the engine declared the value out of bounds
        """
        if self.type is OptionType.BUTTON:
            if value:
                raise InvalidOptionValue(f"Button option {self.name!r} takes no value")
        elif self.type is OptionType.CHECK:
            if value not in ("true", "false"):
                raise InvalidOptionValue(
                    f"Check option {self.name!r} expects 'true' or 'false', got {value!r}"
                )
        elif self.type is OptionType.SPIN:
            try:
                number = int(value)
            except ValueError:
                raise InvalidOptionValue(
                    f"Spin option {self.name!r} expects an integer, got {value!r}"
                ) from None
            if (self.min is not None and number < self.min) or (
                self.max is not None and number > self.max
            ):
                raise InvalidOptionValue(
                    f"Spin option {self.name!r} expects {self.min}..{self.max}, got {number}"
                )
        elif self.type is OptionType.COMBO:
            if value not in self.vars:
                raise InvalidOptionValue(
                    f"Combo option {self.name!r} expects one of {list(self.vars)}, got {value!r}"
                )
        return value


_KEYS = ("type", "default", "min", "max", "var")


def _parse_int(line: str, key: str, token: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise MalformedOption(line, f"{key} is not an integer: {token!r}") from None


def parse_option(line: str) -> Option:
    """
    Parse an 'option name ... type ...' declaration.

    Args:
        line: Raw line received from the engine

    Returns:
        Parsed Option

    Raises:
        MalformedOption: If the line is not a well-formed declaration

    Example:
        >>> parse_option("option name Move Overhead type spin default 10 min 0 max 5000")
        Option(name='Move Overhead', type=<OptionType.SPIN: 'spin'>, default='10', min=0, max=5000, vars=())
    """
    tokens = line.split()

    if len(tokens) < 5:
        raise MalformedOption(line, "too few tokens")
    if tokens[0] != "option" or tokens[1] != "name":
        raise MalformedOption(line, "expected 'option name'")

    # Name runs until the literal 'type' keyword
    pos = 2
    name_tokens = []
    while pos < len(tokens) and tokens[pos] != "type":
        name_tokens.append(tokens[pos])
        pos += 1

    if pos == len(tokens):
        raise MalformedOption(line, "missing 'type'")
    if not name_tokens:
        raise MalformedOption(line, "empty name")

    fields = {"type": None, "default": "", "min": None, "max": None}
    allowed = []

    # Every token is tried as a key, with the next token as its value
    for key, value in zip(tokens[pos:], tokens[pos + 1:]):
        if key not in _KEYS:
            continue
        if key == "var":
            allowed.append(value)
        elif key in ("min", "max"):
            fields[key] = _parse_int(line, key, value)
        else:
            fields[key] = value

    try:
        option_type = OptionType(fields["type"])
    except ValueError:
        raise MalformedOption(line, f"unknown type {fields['type']!r}") from None

    return Option(
        name=" ".join(name_tokens),
        type=option_type,
        default=fields["default"],
        min=fields["min"],
        max=fields["max"],
        vars=tuple(allowed),
    )
