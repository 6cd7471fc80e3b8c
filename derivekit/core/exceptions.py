"""Exceptions raised by derivekit.

Every error here is a local, synchronous contract violation. Nothing in the
package retries or recovers from them; they surface at the point of misuse.
Each class also derives from the builtin exception a caller would naturally
catch for that kind of misuse, so ``except ValueError`` keeps working.

Classes
-------
DerivekitError
    Base class for all derivekit errors.
InvalidConfigurationError
    A plugin was constructed with an unusable configuration.
ArityMismatchError
    The number of supplied sources differs from the number a plugin uses.
AlreadyProcessedError
    Plugin metadata was processed more than once.
UnknownVariableError
    A variable ID is not provided by the plugin or dataset.
ImmutableArrayError
    A write was attempted on a derived array.
EmptyInputError
    A domain union was requested for no domains.
IncompatibleReferenceError
    Vertical domains with different vertical reference systems were combined.

"""


class DerivekitError(Exception):
    """Base class for all derivekit errors."""


class InvalidConfigurationError(DerivekitError, ValueError):
    """A plugin was constructed with an unusable configuration."""


class ArityMismatchError(DerivekitError, ValueError):
    """The number of supplied sources differs from the number a plugin uses."""

    def __init__(self, expected: int, supplied: int, what: str = "data sources"):
        self.expected = expected
        self.supplied = supplied
        super().__init__(
            f"This plugin needs {expected} {what}, but you have supplied {supplied}"
        )


class AlreadyProcessedError(DerivekitError, RuntimeError):
    """Plugin metadata was processed more than once."""


class UnknownVariableError(DerivekitError, KeyError):
    """A variable ID is not provided by the plugin or dataset."""

    def __init__(self, var_id: str, message: str | None = None):
        self.var_id = var_id
        self.message = message or f"Unknown variable '{var_id}'"
        super().__init__(self.message)

    def __str__(self):
        # KeyError would otherwise quote the message
        return self.message


class ImmutableArrayError(DerivekitError, TypeError):
    """A write was attempted on a derived array."""


class EmptyInputError(DerivekitError, ValueError):
    """A domain union was requested for no domains."""


class IncompatibleReferenceError(DerivekitError, ValueError):
    """Vertical domains with different vertical reference systems were combined."""
