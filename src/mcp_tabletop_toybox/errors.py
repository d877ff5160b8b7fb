"""Error types shared by the dice engine, the decks and the server.

Core operations report failures as values (see ``ParseFailure`` and
``DrawResult``). These exceptions are raised at the outer layer only, with a
stable bracketed code at the start of the message.
"""


class DiceError(ValueError):
    """User-facing validation errors (fail-fast, no roll performed)."""


class DeckError(ValueError):
    """Raised when a draw or reset request cannot be served."""


class ConfigError(ValueError):
    """Raised for invalid environment configuration."""
