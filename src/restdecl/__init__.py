"""restdecl -- declarative HTTP clients with typed decoding and bounded retries.

A remote REST operation is declared once as an
:class:`~restdecl.models.EndpointDescriptor`. A
:class:`~restdecl.client.Client` turns a descriptor plus call-time arguments
into a network call, decodes the JSON response into the declared result type,
classifies failures, and retries transient ones under a bounded policy.

Typical usage::

    from restdecl.client import Client
    from restdecl.github import CONTRIBUTORS

    with Client() as client:
        contributors = client.bind(CONTRIBUTORS)
        for c in contributors("OpenFeign", "feign"):
            print(c.login, c.contributions)

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    endpoint: Helpers for declaring endpoint descriptors.
    client: Request building, transport, decoding, classification, retry.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
    testing: Scripted transport and sleep doubles for tests.
"""

__version__ = "0.1.0"
