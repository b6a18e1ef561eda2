"""The ``contributors`` command -- the demo caller of the client pipeline.

Resolves the effective configuration, invokes
:data:`~restdecl.github.CONTRIBUTORS` through a
:class:`~restdecl.client.Client`, and renders the decoded list. Pipeline
failures are reported on stderr and mapped to their exit codes.
"""

from __future__ import annotations

from typing import Optional

import typer

from restdecl.exceptions import RestdeclError
from restdecl.output import OutputFormat, error, format_response, get_output, print_table


def contributors_command(
    owner: str = typer.Argument(help="Repository owner, e.g. 'OpenFeign'."),
    repo: str = typer.Argument(help="Repository name, e.g. 'feign'."),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="API base URL (default: https://api.github.com)."
    ),
    max_attempts: Optional[int] = typer.Option(
        None, "--max-attempts", min=1, help="Total attempts per call, including the first."
    ),
) -> None:
    """List the contributors of a GitHub repository.

    Example::

        restdecl contributors OpenFeign feign
        restdecl --json contributors OpenFeign feign
    """
    from restdecl.client import Client
    from restdecl.config import resolve_config
    from restdecl.github import CONTRIBUTORS

    try:
        config = resolve_config(cli_base_url=base_url, cli_max_attempts=max_attempts)
        with Client(config.client) as client:
            contributors = client.bind(CONTRIBUTORS)(owner, repo)
    except RestdeclError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    output = get_output()
    if output.format == OutputFormat.JSON:
        format_response([c.model_dump() for c in contributors])
    elif output.format == OutputFormat.RICH:
        print_table(
            ["login", "contributions"],
            [[c.login, str(c.contributions)] for c in contributors],
            title=f"{owner}/{repo}",
        )
    else:
        for c in contributors:
            output.print_data(f"{c.login} ({c.contributions})")
