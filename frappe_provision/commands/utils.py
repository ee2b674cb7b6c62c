# imports - third party imports
import click


@click.command("start", help="Free the bench's ports and start the development server")
def start():
	from frappe_provision.commands.make import get_workspace

	get_workspace().start()


@click.command("free-ports", help="Kill processes listening on the web, socketio and redis ports")
def free_ports():
	from frappe_provision.config.provision_config import get_config
	from frappe_provision.services import free_bench_ports

	free_bench_ports(get_config())


@click.command("wait-for-port", help="Block until HOST:PORT accepts TCP connections")
@click.argument("host")
@click.argument("port", type=int)
@click.option(
	"--timeout", default=60, type=click.IntRange(min=0), help="Give up after this many seconds"
)
@click.option(
	"--interval", default=3, type=click.IntRange(min=1), help="Seconds between attempts"
)
def wait_for_port(host, port, timeout, interval):
	from frappe_provision.network import wait_for_port

	wait_for_port(host, port, timeout=timeout, interval=interval)
