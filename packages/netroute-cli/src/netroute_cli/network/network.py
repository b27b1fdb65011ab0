import os
import sys
from typing import Optional

import click
import yaml
from netroute_core.codebase.debug import configure_logger
from netroute_core.config import Settings, load_settings
from netroute_core.data.network_loader import load_network, load_topology, save_network
from netroute_core.network import Network
from netroute_core.validation.topology import validate_topology
from rich.console import Console
from rich.table import Table

console = Console()

SEVERITY_COLORS = {"FAIL": "red", "WARN": "yellow", "INFO": "blue"}

topology_argument = click.argument("topology", type=click.Path(path_type=str, dir_okay=False, exists=True))
output_option = click.option(
    "--output",
    type=click.Path(path_type=str, dir_okay=False),
    default=None,
    help="Write the changed topology here instead of back to TOPOLOGY.",
)


def _settings() -> Settings:
    settings = load_settings(os.getenv("NETROUTE_SETTINGS", "netroute.yaml"))
    configure_logger(settings.log_level)
    return settings


def load_or_exit(topology: str) -> Network:
    try:
        return load_network(topology, _settings())
    except Exception as e:
        console.print(f"[red]Error loading {topology}: {e}[/red]")
        sys.exit(1)


def _mutate_and_save(topology: str, output: Optional[str], action) -> None:
    network = load_or_exit(topology)
    try:
        message = action(network)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    if message is None:
        path = save_network(network, output or topology)
        console.print(f"[green]✓[/green] Topology written to {path}")
    else:
        console.print(f"[yellow]{message}[/yellow]")
        sys.exit(1)


@click.group()
def network() -> None:
    """Query and edit topology files."""
    pass


@network.command("list-subnets")
@topology_argument
def list_subnets(topology: str) -> None:
    """Print every subnet in address order."""
    for subnet in load_or_exit(topology).list_subnets():
        click.echo(subnet.cidr)


@network.command("list-systems")
@topology_argument
@click.argument("cidr")
def list_systems(topology: str, cidr: str) -> None:
    """Print the systems of a subnet: router first, then hosts by address."""
    net = load_or_exit(topology)
    if net.subnet_by_cidr(cidr) is None:
        console.print(f"[red]Subnet not found: {cidr}[/red]")
        sys.exit(1)

    table = Table(title=f"Systems in {cidr}")
    table.add_column("Address", style="cyan")
    table.add_column("Name")
    table.add_column("Role")
    for system in net.list_systems(cidr):
        table.add_row(str(system.address), system.name, system.role.value)
    console.print(table)


@network.command("range")
@topology_argument
@click.argument("cidr")
def address_range(topology: str, cidr: str) -> None:
    """Print the first and last address of a subnet."""
    net = load_or_exit(topology)
    if net.subnet_by_cidr(cidr) is None:
        console.print(f"[red]Subnet not found: {cidr}[/red]")
        sys.exit(1)
    first, last = net.range_of(cidr)
    click.echo(f"{first} {last}")


@network.command("routes")
@topology_argument
@click.option("--router", "router_name", type=str, default=None, help="Only show this router's table.")
def routes(topology: str, router_name: Optional[str]) -> None:
    """Show the converged routing table of each router."""
    net = load_or_exit(topology)
    routers = net.topology.routers()
    if router_name:
        routers = tuple(r for r in routers if r.name == router_name)
        if not routers:
            console.print(f"[red]Unknown router: {router_name}[/red]")
            sys.exit(1)

    for router in sorted(routers, key=lambda r: int(r.address)):
        table = Table(title=f"{router.name} ({router.address})")
        table.add_column("Subnet", style="cyan")
        table.add_column("Hops", justify="right")
        table.add_column("Path")
        for cidr, hops in sorted(net.route_table(router).items()):
            table.add_row(cidr, str(len(hops)), " -> ".join(str(h.address) for h in hops))
        console.print(table)

    report = net.propagator.last_report
    if report is not None:
        console.print(f"Converged in {report.passes} pass(es), {report.updates} update(s)")


@network.command("send-packet")
@topology_argument
@click.argument("source")
@click.argument("destination")
@click.option("--cost", is_flag=True, help="Also print the summed link cost.")
def send_packet(topology: str, source: str, destination: str, cost: bool) -> None:
    """Print the shortest path between two addresses (or names)."""
    if source == destination:
        console.print("[red]Source and destination cannot be the same.[/red]")
        sys.exit(1)

    net = load_or_exit(topology)
    try:
        path = net.find_shortest_path(source, destination)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if not path:
        console.print("[yellow]No path found between the specified systems.[/yellow]")
        sys.exit(1)
    click.echo(" ".join(str(system.address) for system in path))
    if cost:
        click.echo(f"cost: {net.pathfinder.path_cost(path)}")


@network.command("validate")
@topology_argument
@click.option(
    "--strict",
    is_flag=True,
    help="Treat warnings as failures (exit code 2).",
)
@click.option(
    "--export",
    type=click.Path(path_type=str, dir_okay=False),
    help="Export validation findings to YAML file.",
)
def validate(topology: str, strict: bool, export: Optional[str]) -> None:
    """Check a topology file against the structural rules."""
    console.print("\n[bold cyan]Topology Validation[/bold cyan]")

    try:
        report = validate_topology(load_topology(topology, _settings()))
    except Exception as e:
        console.print(f"[red]Error during validation: {e}[/red]")
        sys.exit(1)

    if export:
        with open(export, "w") as f:
            yaml.dump(report.model_dump(), f, default_flow_style=False, sort_keys=True)
        console.print(f"[green]✓[/green] Findings exported to {export}")

    table = Table(title="Validation Summary")
    table.add_column("Severity", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("FAIL", str(report.summary.get("fail", 0)), style="red")
    table.add_row("WARN", str(report.summary.get("warn", 0)), style="yellow")
    table.add_row("INFO", str(report.summary.get("info", 0)), style="blue")
    console.print(table)

    for finding in report.findings:
        color = SEVERITY_COLORS.get(finding.severity, "white")
        console.print(f"[{color}]{finding.severity}[/{color}] {finding.code}: {finding.message}")

    fail_count = report.summary.get("fail", 0)
    warn_count = report.summary.get("warn", 0)
    if fail_count > 0:
        console.print(f"\n[red]✗[/red] Validation failed with {fail_count} errors")
        sys.exit(1)
    elif strict and warn_count > 0:
        console.print(f"\n[yellow]⚠[/yellow] Validation completed with {warn_count} warnings (strict mode)")
        sys.exit(2)
    console.print("\n[green]✓[/green] Validation completed successfully")


@network.command("export")
@topology_argument
@click.argument("output", type=click.Path(path_type=str, dir_okay=False))
def export(topology: str, output: str) -> None:
    """Convert between YAML and diagram formats (chosen by OUTPUT's suffix)."""
    path = save_network(load_or_exit(topology), output)
    console.print(f"[green]✓[/green] Topology written to {path}")


@network.command("add-computer")
@topology_argument
@click.argument("cidr")
@click.argument("address")
@output_option
def add_computer(topology: str, cidr: str, address: str, output: Optional[str]) -> None:
    """Add a host to a subnet."""

    def action(net: Network):
        net.add_computer(cidr, address)

    _mutate_and_save(topology, output, action)


@network.command("remove-computer")
@topology_argument
@click.argument("cidr")
@click.argument("address")
@output_option
def remove_computer(topology: str, cidr: str, address: str, output: Optional[str]) -> None:
    """Remove a host (and its connections) from a subnet."""

    def action(net: Network):
        net.remove_computer(cidr, address)

    _mutate_and_save(topology, output, action)


@network.command("add-connection")
@topology_argument
@click.argument("first")
@click.argument("second")
@click.argument("weight", type=int, required=False)
@output_option
def add_connection(topology: str, first: str, second: str, weight: Optional[int], output: Optional[str]) -> None:
    """Connect two systems; WEIGHT is required inside a subnet and forbidden between routers."""

    def action(net: Network):
        net.connect(first, second, weight)

    _mutate_and_save(topology, output, action)


@network.command("remove-connection")
@topology_argument
@click.argument("first")
@click.argument("second")
@output_option
def remove_connection(topology: str, first: str, second: str, output: Optional[str]) -> None:
    """Remove the connection between two systems."""

    def action(net: Network):
        a = net.system_by_address(first) or net.system_by_name(first)
        b = net.system_by_address(second) or net.system_by_name(second)
        if a is None or b is None:
            return f"Unknown system: {first if a is None else second}"
        if not net.remove_connection(a, b):
            return "No connection exists between the specified systems."

    _mutate_and_save(topology, output, action)
