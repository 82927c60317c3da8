"""Usage errors: raised when the API is called wrong, never for a failed assertion."""


class LogAssertError(Exception):
    """Base class for every usage error raised by logassert."""


class UnsupportedSourceError(LogAssertError, TypeError):
    """The actual value is not a buffer provider, contents provider or stream."""


class InvalidDataArgumentsError(LogAssertError, ValueError):
    """data() was given an odd-length or non-string-keyed argument list."""


class MalformedLogError(LogAssertError, ValueError):
    """The log content holds no decodable structured record at all."""


class ExpectationFileError(LogAssertError, ValueError):
    """An expectation document could not be turned into patterns."""
