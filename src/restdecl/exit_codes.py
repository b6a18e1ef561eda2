"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to one failure class of the client pipeline and is
referenced by the corresponding :class:`~restdecl.exceptions.RestdeclError`
subclass. Shell wrappers can inspect the exit code to tell a rejected request
from an exhausted retry budget without parsing stderr.

Example::

    $ restdecl contributors OpenFeign feign
    $ echo $?
    5   # EXIT_RETRY_EXHAUSTED -- the remote kept failing transiently
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_MALFORMED_REQUEST = 2
"""The request could not be built from the supplied arguments."""

EXIT_TERMINAL_STATUS = 3
"""The remote API answered with a non-retryable error status."""

EXIT_DECODE_ERROR = 4
"""A successful response body could not be decoded into the result type."""

EXIT_RETRY_EXHAUSTED = 5
"""Every attempt allowed by the retry policy failed transiently."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CANCELLED = 130
"""The call was cancelled while waiting to retry."""
