"""ingresscheck CLI: ``ingresscheck check`` and friends.

Usage::

    ingresscheck check --namespace shop --output table
    ingresscheck check --snapshot snapshots/ingress.json
    ingresscheck snapshot --kubeconfig ~/.kube/config
"""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console

from ingresscheck import config
from ingresscheck.utils import rprint

# ---------------------------------------------------------------------------
# Typer application
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="ingresscheck",
    help="ingresscheck: check the correctness of GKE Ingress and related resources",
    add_completion=False,
)

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _validate_output(output: str) -> None:
    if output not in config.SUPPORTED_OUTPUTS:
        rprint(
            f"[bold red]Unsupported output type {output!r}. "
            f"Supported: {', '.join(config.SUPPORTED_OUTPUTS)}[/bold red]"
        )
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# check: the primary command
# ---------------------------------------------------------------------------

@app.command()
def check(
    kubeconfig: str = typer.Option(
        config.DEFAULT_KUBECONFIG,
        "--kubeconfig", "-k",
        help="kubeconfig file to use for Kubernetes config.",
    ),
    context: Optional[str] = typer.Option(
        None,
        "--context", "-c",
        help="Context to use for Kubernetes config.",
    ),
    namespace: Optional[str] = typer.Option(
        None,
        "--namespace", "-n",
        help="Only check resources from this namespace.",
    ),
    output: str = typer.Option(
        config.DEFAULT_OUTPUT_FORMAT,
        "--output", "-o",
        help=f"Output format ({', '.join(config.SUPPORTED_OUTPUTS)}).",
    ),
    snapshot: Optional[str] = typer.Option(
        None,
        "--snapshot", "-s",
        help="Check a JSON/YAML snapshot file instead of a live cluster.",
    ),
    out_file: Optional[str] = typer.Option(
        None,
        "--out-file",
        help="Also write the JSON report to this path.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging.",
    ),
) -> None:
    """Check ingresses and the resources they reference."""
    _setup_logging(debug)
    _validate_output(output)

    from ingresscheck.reporting import render_json, render_table, summarize, write_report
    from ingresscheck.runtime import run_engine

    rprint("[bold cyan]▶ Starting check-gke-ingress…[/bold cyan]")
    report = run_engine(
        namespace=namespace,
        kubeconfig=kubeconfig,
        context=context,
        snapshot=snapshot,
    )

    if output == config.TABLE_OUTPUT:
        Console().print(render_table(report))
    else:
        typer.echo(render_json(report))

    if out_file:
        path = write_report(report, out_file)
        rprint(f"[bold green]✔ Report written to {path}[/bold green]")

    counts = summarize(report)
    rprint(
        f"  {len(report.resources)} ingress(es): "
        + ", ".join(f"{v} {k.lower()}" for k, v in counts.items())
    )
    if not report.ok:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# snapshot: save ingress-related objects for offline checks
# ---------------------------------------------------------------------------

@app.command()
def snapshot(
    kubeconfig: str = typer.Option(config.DEFAULT_KUBECONFIG, "--kubeconfig", "-k"),
    context: Optional[str] = typer.Option(None, "--context", "-c"),
    namespace: Optional[str] = typer.Option(None, "--namespace", "-n"),
    out_file: str = typer.Option(config.DEFAULT_SNAPSHOT_FILE, "--out-file", "-f"),
    debug: bool = typer.Option(False, "--debug"),
) -> None:
    """Save ingresses, services, BackendConfigs and FrontendConfigs to a file."""
    _setup_logging(debug)
    from ingresscheck.cluster import KubeAccessor
    from ingresscheck.errors import ClusterConnectionError, IngressListError
    from ingresscheck.utils import write_json

    try:
        accessor = KubeAccessor.connect(kubeconfig, context)
        snap = accessor.snapshot(namespace)
    except (ClusterConnectionError, IngressListError) as exc:
        rprint(f"[bold red]✘ {exc}[/bold red]")
        raise typer.Exit(code=1)

    path = write_json(snap, out_file)
    rprint(
        f"[bold green]✔ Snapshot saved to {path}[/bold green]  "
        f"({len(snap['ingresses'])} ingresses, {len(snap['services'])} services)"
    )


@app.command()
def version() -> None:
    """Show version information."""
    from ingresscheck import __version__
    typer.echo(f"ingresscheck version {__version__}")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
