"""Chat command parsing for `/flux` and `/fluxultra`.

Command grammar:
    /flux <prompt words...> [key=value ...]
    /fluxultra <prompt words...> [key=value ...]

    Options are only recognized as trailing `key=value` tokens, so prompts may
    contain `=` anywhere before the first option. Command names are matched
    case-insensitively.

Option defaults:
    Mirror the slash commands the bot exposed originally (safety tolerance 6,
    prompt improvement on for `/flux`, `1:1` aspect ratio for `/fluxultra`).

Error handling strategy:
    Unknown option names and unparsable values raise `CommandError` with a
    user-facing message.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable


FLUX_COMMAND = "/flux"
FLUX_ULTRA_COMMAND = "/fluxultra"

OUTPUT_FORMAT = "jpeg"

_OPTION_TOKEN = re.compile(r"^([a-z_]+)=(.*)$")

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}


class CommandError(ValueError):
    """User input could not be turned into an image request."""


def _optional_str(raw: str) -> str | None:
    return raw or None


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(raw)


FLUX_OPTIONS: dict[str, Callable[[str], Any]] = {
    "image_prompt": _optional_str,
    "width": int,
    "height": int,
    "prompt_improvement": _parse_bool,
    "seed": int,
    "safety_tolerance": int,
}

FLUX_ULTRA_OPTIONS: dict[str, Callable[[str], Any]] = {
    "image_prompt": _optional_str,
    "aspect_ratio": str,
    "seed": int,
    "safety_tolerance": int,
    "raw": _parse_bool,
    "image_prompt_strength": float,
}

FLUX_DEFAULTS: dict[str, Any] = {
    "image_prompt": None,
    "width": 1024,
    "height": 768,
    "prompt_improvement": True,
    "seed": None,
    "safety_tolerance": 6,
}

FLUX_ULTRA_DEFAULTS: dict[str, Any] = {
    "image_prompt": None,
    "aspect_ratio": "1:1",
    "seed": None,
    "safety_tolerance": 6,
    "raw": False,
    "image_prompt_strength": 0.1,
}

USAGE = (
    "Usage:\n"
    "  /flux <prompt> [image_prompt=URL] [width=1024] [height=768] "
    "[prompt_improvement=true] [seed=N] [safety_tolerance=6]\n"
    "  /fluxultra <prompt> [image_prompt=URL] [aspect_ratio=1:1] [seed=N] "
    "[safety_tolerance=6] [raw=false] [image_prompt_strength=0.1]"
)


@dataclass(frozen=True)
class ImageCommand:
    """A parsed image command.

    Attributes:
        ultra: `True` for `/fluxultra`, `False` for `/flux`.
        prompt: Prompt text with options removed.
        options: Every option for the command, defaults filled in.
    """

    ultra: bool
    prompt: str
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return FLUX_ULTRA_COMMAND if self.ultra else FLUX_COMMAND


def _split_command(text: str) -> tuple[str, str] | None:
    stripped = text.strip()
    if not stripped:
        return None
    parts = stripped.split(None, 1)
    head = parts[0].lower()
    rest = parts[1] if len(parts) > 1 else ""
    if head not in (FLUX_COMMAND, FLUX_ULTRA_COMMAND):
        return None
    return head, rest.strip()


def is_image_command(text: str | None) -> bool:
    """Return whether text starts with `/flux` or `/fluxultra`."""
    return bool(text) and _split_command(text) is not None


def parse_command(text: str | None) -> ImageCommand | None:
    """Parse chat input into an `ImageCommand`.

    Returns:
        Parsed command, or `None` when the text is not an image command.

    Raises:
        CommandError: Empty prompt, unknown option or invalid option value.
    """
    if not text:
        return None
    split = _split_command(text)
    if split is None:
        return None
    name, rest = split

    ultra = name == FLUX_ULTRA_COMMAND
    converters = FLUX_ULTRA_OPTIONS if ultra else FLUX_OPTIONS
    options = dict(FLUX_ULTRA_DEFAULTS if ultra else FLUX_DEFAULTS)

    tokens = rest.split()
    option_tokens: list[tuple[str, str]] = []
    while tokens:
        match = _OPTION_TOKEN.match(tokens[-1])
        if not match:
            break
        option_tokens.append((match.group(1), match.group(2)))
        tokens.pop()

    for key, raw in reversed(option_tokens):
        converter = converters.get(key)
        if converter is None:
            raise CommandError(
                f"Unknown option '{key}' for {name}. Allowed: {', '.join(converters)}."
            )
        try:
            options[key] = converter(raw)
        except ValueError:
            raise CommandError(f"Invalid value for '{key}': {raw!r}.") from None

    prompt = " ".join(tokens)
    if not prompt:
        raise CommandError(f"A prompt is required.\n{USAGE}")

    return ImageCommand(ultra=ultra, prompt=prompt, options=options)
