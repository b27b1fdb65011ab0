import sys

import click
from netroute_cli.network.network import console, load_or_exit
from netroute_graph.render import render_network_topology, render_route

topology_argument = click.argument("topology", type=click.Path(path_type=str, dir_okay=False, exists=True))


@click.group()
def graph():
    pass


@graph.command()
@topology_argument
@click.option("--output", type=str, default="netroute_network_topology.dot", help="Output .dot path.")
def network(topology: str, output: str):
    render_network_topology(load_or_exit(topology)).render(output)


@graph.command()
@topology_argument
@click.argument("source")
@click.argument("destination")
@click.option("--output", type=str, default="netroute_route.dot", help="Output .dot path.")
def route(topology: str, source: str, destination: str, output: str):
    net = load_or_exit(topology)
    try:
        path = net.find_shortest_path(source, destination)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    if not path:
        console.print("[yellow]No path found between the specified systems.[/yellow]")
        sys.exit(1)
    render_route(net, path).render(output)
