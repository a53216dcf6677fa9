"""Exception types raised by clickmark."""


class ClickmarkError(Exception):
    """Base class for clickmark errors."""


class DetachedBlockError(ClickmarkError):
    """A block reference that is not attached to the document was used."""


class SessionClosedError(ClickmarkError):
    """The editor session was used after destroy()."""


class UnknownCommandError(ClickmarkError):
    """A toolbar command name that the session does not know."""
