"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~oauth2_authorizer.exceptions.AuthorizerError`
subclass. Shell scripts wrapping ``oauth2-authorizer token`` can inspect the
exit code to tell a bad configuration apart from a rejected token request
without parsing stderr.

Example::

    $ oauth2-authorizer token --config broken.yaml
    $ echo $?
    2   # EXIT_CONFIGURATION_ERROR -- token_endpoint_uri is missing
"""

EXIT_SUCCESS = 0
"""A token was acquired."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIGURATION_ERROR = 2
"""Options are invalid or a required credential is missing."""

EXIT_PROTOCOL_ERROR = 3
"""The token endpoint answered with a non-success HTTP status."""

EXIT_NO_TOKEN = 4
"""The exchange completed but yielded no usable access token."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
