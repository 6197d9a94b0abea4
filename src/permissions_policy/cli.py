"""
CLI entry point for permissions_policy.

This module provides the Typer-based command-line interface.

Commands:
    parse-header    Show how a Permissions-Policy header is parsed
    parse-allow     Show how an iframe allow attribute is parsed
    check           Evaluate features against a policy
    fetch           Fetch a page and evaluate features against its header

Architecture Note:
    The CLI only parses arguments and renders results; all decisions are
    made by PermissionsPolicy, so the same logic is usable as a library.
"""

import json
import logging
import traceback
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from permissions_policy import __version__
from permissions_policy.errors import PermissionsPolicyError
from permissions_policy.fetch import DEFAULT_TIMEOUT_SECONDS, fetch_policy_header
from permissions_policy.normalize import normalize
from permissions_policy.origin import canonicalize_origin
from permissions_policy.parser import parse_allow, parse_header
from permissions_policy.policy import PermissionsPolicy
from permissions_policy.schema import (
    FrameInfo,
    NormalizedPolicy,
    ParsedPolicy,
    PolicyDecision,
    load_config,
)

app = typer.Typer(
    name="permissions-policy",
    help="Evaluate Permissions-Policy headers and iframe allow attributes.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

ICON_ALLOWED = "[green]✓[/green]"
ICON_DENIED = "[red]✗[/red]"

JsonOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Output results in JSON format.",
    ),
]
DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Enable debug mode with full error tracebacks.",
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]permissions-policy[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log parsing and evaluation details.",
        ),
    ] = False,
) -> None:
    """
    permissions-policy - answer document.featurePolicy.allowsFeature() offline.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


# =============================================================================
# parse-header / parse-allow
# =============================================================================


@app.command("parse-header")
def parse_header_command(
    value: Annotated[
        str,
        typer.Argument(help="Permissions-Policy header value."),
    ],
    origin: Annotated[
        Optional[str],
        typer.Option(
            "--origin",
            "-o",
            help="Page origin; resolves 'self' when given.",
        ),
    ] = None,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Parse a Permissions-Policy header.

    Example:
        $ permissions-policy parse-header 'fullscreen=(self "https://a.example"), camera=()'
    """
    try:
        parsed = parse_header(value)
        if origin is not None:
            parsed = normalize(parsed, canonicalize_origin(origin))
    except PermissionsPolicyError as e:
        _fail(e, json_output, debug)

    _output_parsed(parsed, "Permissions-Policy", json_output)


@app.command("parse-allow")
def parse_allow_command(
    value: Annotated[
        str,
        typer.Argument(help="iframe allow attribute value."),
    ],
    origin: Annotated[
        Optional[str],
        typer.Option(
            "--origin",
            "-o",
            help="Page origin; resolves 'self' when given.",
        ),
    ] = None,
    frame_origin: Annotated[
        Optional[str],
        typer.Option(
            "--frame-origin",
            "-f",
            help="iframe origin; resolves 'src' and empty allowlists. Requires --origin.",
        ),
    ] = None,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Parse an iframe allow attribute.

    Example:
        $ permissions-policy parse-allow "fullscreen 'src'; camera *"
    """
    if frame_origin is not None and origin is None:
        raise typer.BadParameter("--frame-origin requires --origin", param_hint="--frame-origin")

    parsed: ParsedPolicy | NormalizedPolicy = parse_allow(value)
    try:
        if origin is not None:
            src = canonicalize_origin(frame_origin) if frame_origin else None
            parsed = normalize(parsed, canonicalize_origin(origin), src)
    except PermissionsPolicyError as e:
        _fail(e, json_output, debug)

    _output_parsed(parsed, "allow", json_output)


def _output_parsed(parsed: ParsedPolicy | NormalizedPolicy, title: str, json_output: bool) -> None:
    normalized = isinstance(parsed, NormalizedPolicy)
    if json_output:
        print(json.dumps({"normalized": normalized, "features": parsed.to_dict()}, indent=2))
        return

    if not parsed.features:
        console.print(f"[dim]{title}: no features[/dim]")
        return

    table = Table(title=f"{title} ({'normalized' if normalized else 'parsed'})")
    table.add_column("Feature", style="cyan")
    table.add_column("Allowlist")
    for feature, allowlist in parsed.features.items():
        if allowlist.is_wildcard:
            rendered = "[green]*[/green]"
        elif allowlist.is_none or not allowlist.origins:
            rendered = "[red]none[/red]"
        else:
            rendered = escape("\n".join(sorted(allowlist.origins)))
        table.add_row(escape(feature), rendered)
    console.print(table)


# =============================================================================
# check
# =============================================================================


@app.command()
def check(
    features: Annotated[
        list[str],
        typer.Argument(help="Features to evaluate (e.g. fullscreen geolocation)."),
    ],
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Policy scenario YAML file.",
            exists=True,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    origin: Annotated[
        Optional[str],
        typer.Option(
            "--origin",
            "-o",
            help="Page origin (required without --config).",
        ),
    ] = None,
    header: Annotated[
        str,
        typer.Option(
            "--header",
            "-H",
            help="Permissions-Policy header value.",
        ),
    ] = "",
    defaults: Annotated[
        Optional[list[str]],
        typer.Option(
            "--default",
            "-d",
            help="Default allowlist as feature=value, e.g. fullscreen=self. Repeatable.",
        ),
    ] = None,
    frame_origin: Annotated[
        Optional[str],
        typer.Option(
            "--frame-origin",
            "-f",
            help="Evaluate inside an iframe with this origin.",
        ),
    ] = None,
    allow: Annotated[
        str,
        typer.Option(
            "--allow",
            "-a",
            help="allow attribute of the iframe (with --frame-origin).",
        ),
    ] = "",
    check_origin: Annotated[
        Optional[str],
        typer.Option(
            "--check-origin",
            help="Origin to check; defaults to the frame origin, else the page origin.",
        ),
    ] = None,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Evaluate features against a policy.

    Exits with 0 when every feature is allowed, 1 otherwise.

    Example:
        $ permissions-policy check fullscreen --origin https://a.example \\
            --header "fullscreen=(self)" --frame-origin https://b.example --allow fullscreen
    """
    if config_path is None and origin is None:
        raise typer.BadParameter("either --config or --origin is required", param_hint="--origin")

    try:
        if config_path is not None:
            policy = PermissionsPolicy.from_config(load_config(config_path))
        else:
            policy = PermissionsPolicy(
                origin,
                header,
                default_allowlist=_parse_defaults(defaults or []),
            )
        if frame_origin is not None:
            policy = policy.inherit(FrameInfo(origin=frame_origin, allow=allow))
    except PermissionsPolicyError as e:
        _fail(e, json_output, debug)

    decisions = [policy.evaluate(feature, check_origin) for feature in features]
    _output_decisions(policy, decisions, json_output)

    raise typer.Exit(code=0 if all(d.allowed for d in decisions) else 1)


def _parse_defaults(values: list[str]) -> dict[str, str]:
    """Split repeated feature=value options."""
    result: dict[str, str] = {}
    for value in values:
        feature, sep, allowlist = value.partition("=")
        if not sep or not feature.strip():
            raise typer.BadParameter(f"expected feature=value, got {value!r}", param_hint="--default")
        result[feature.strip()] = allowlist.strip()
    return result


# =============================================================================
# fetch
# =============================================================================


@app.command()
def fetch(
    url: Annotated[
        str,
        typer.Argument(help="Page URL to fetch."),
    ],
    features: Annotated[
        Optional[list[str]],
        typer.Option(
            "--feature",
            "-F",
            help="Feature to evaluate. Repeatable; defaults to every feature in the header.",
        ),
    ] = None,
    defaults: Annotated[
        Optional[list[str]],
        typer.Option(
            "--default",
            "-d",
            help="Default allowlist as feature=value. Repeatable.",
        ),
    ] = None,
    timeout: Annotated[
        float,
        typer.Option(
            "--timeout",
            help="Request timeout in seconds.",
        ),
    ] = DEFAULT_TIMEOUT_SECONDS,
    check_origin: Annotated[
        Optional[str],
        typer.Option(
            "--check-origin",
            help="Origin to check; defaults to the page origin.",
        ),
    ] = None,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Fetch a page and evaluate its Permissions-Policy header.

    The origin of the final URL (after redirects) is used as the page origin.

    Example:
        $ permissions-policy fetch https://example.com -F camera -F fullscreen
    """
    try:
        fetched = fetch_policy_header(url, timeout=timeout)
        policy = PermissionsPolicy(
            fetched.url,
            fetched.header,
            default_allowlist=_parse_defaults(defaults or []),
        )
    except PermissionsPolicyError as e:
        _fail(e, json_output, debug)

    if not json_output:
        console.print(f"[dim]{escape(fetched.url)} ({fetched.status_code})[/dim]")
        console.print(f"[dim]Permissions-Policy: {escape(fetched.header or '(none)')}[/dim]")

    names = features or policy.features()
    decisions = [policy.evaluate(feature, check_origin) for feature in names]
    _output_decisions(policy, decisions, json_output, extra={"url": fetched.url, "header": fetched.header})

    raise typer.Exit(code=0 if all(d.allowed for d in decisions) else 1)


# =============================================================================
# Output helpers
# =============================================================================


def _output_decisions(
    policy: PermissionsPolicy,
    decisions: list[PolicyDecision],
    json_output: bool,
    extra: dict[str, Any] | None = None,
) -> None:
    if json_output:
        output: dict[str, Any] = {
            "origin": policy.origin,
            "frame_origin": policy.frame.origin if policy.frame else None,
            "decisions": [d.model_dump() for d in decisions],
            "all_allowed": all(d.allowed for d in decisions),
        }
        if extra:
            output.update(extra)
        print(json.dumps(output, indent=2))
        return

    title = f"Policy for {escape(policy.origin)}"
    if policy.frame:
        title += f" in iframe {escape(policy.frame.origin)}"
    table = Table(title=title)
    table.add_column("", width=2)
    table.add_column("Feature", style="cyan")
    table.add_column("Origin")
    table.add_column("Rule", style="dim")
    table.add_column("Reason")
    for d in decisions:
        table.add_row(
            ICON_ALLOWED if d.allowed else ICON_DENIED,
            escape(d.feature),
            escape(d.origin or "-"),
            escape(d.rule_matched or "-"),
            escape(d.reason),
        )
    console.print(table)


def _fail(error: PermissionsPolicyError, json_output: bool, debug: bool) -> None:
    """Report an error and exit with code 1."""
    if json_output:
        output = {"error": True, **error.to_dict()}
        if debug:
            output["traceback"] = traceback.format_exc()
        print(json.dumps(output, indent=2))
    else:
        console.print(f"[red]Error: {escape(str(error))}[/red]")
        if debug:
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
    raise typer.Exit(code=1)
