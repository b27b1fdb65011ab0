import click
from netroute_cli.graph.graph import graph
from netroute_cli.network.network import network
from netroute_cli.shell.shell import shell


@click.group()
def cli():
    pass


# add cli groups here

cli.add_command(network)
cli.add_command(graph)
cli.add_command(shell)
