"""
Bot identity registry.

One process answers as several Telegram bots. Tokens are read from the
environment once at startup:

    TELEGRAM_TOKEN              default identity
    TELEGRAM_TOKEN_<NAME>       identity "<name>" (lower-cased)

Commands sent to a group look like /report@some_bot; the part after "@"
selects which identity answers.
"""

import os
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from .logging_config import bot_logger as logger

TOKEN_PREFIX = "TELEGRAM_TOKEN_"


@dataclass(frozen=True)
class CommandTarget:
    command: str
    bot_name: Optional[str] = None


def split_command(text: str) -> CommandTarget:
    """
    Split "/cmd@botname" into its base command and target bot name.

    Text without "@" is returned unchanged with no target.
    """
    if not text:
        return CommandTarget(command=text)

    base, sep, name = text.partition("@")
    if not sep:
        return CommandTarget(command=text)
    return CommandTarget(command=base, bot_name=name.lower())


class BotRegistry:
    def __init__(self, tokens: Mapping[str, str], default_token: Optional[str] = None):
        self._tokens = {name.lower(): token for name, token in tokens.items()}
        self.default_token = default_token

    @classmethod
    def from_environ(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        default_token: Optional[str] = None
    ) -> "BotRegistry":
        environ = os.environ if environ is None else environ
        tokens = {
            key[len(TOKEN_PREFIX):].lower(): value
            for key, value in environ.items()
            if key.startswith(TOKEN_PREFIX)
        }
        if default_token is None:
            default_token = environ.get("TELEGRAM_TOKEN")
        logger.info(f"Loaded {len(tokens)} named bot identities: {sorted(tokens)}")
        return cls(tokens, default_token)

    @property
    def names(self) -> list[str]:
        return sorted(self._tokens)

    def is_known(self, bot_name: Optional[str]) -> bool:
        return bool(bot_name) and bot_name.lower() in self._tokens

    def token_for(self, bot_name: Optional[str]) -> Optional[str]:
        """Token for a bot name, or the default token if absent or unknown."""
        if not bot_name:
            return self.default_token
        return self._tokens.get(bot_name.lower()) or self.default_token

    def warn_missing(self, required: Iterable[str]) -> list[str]:
        """Log a warning for each required bot without a token; returns them."""
        missing = [name for name in required if not self.is_known(name)]
        for name in missing:
            logger.warning(
                f"Missing token for bot '{name}'. "
                f"Environment variable {TOKEN_PREFIX}{name.upper()} is not set."
            )
        return missing
