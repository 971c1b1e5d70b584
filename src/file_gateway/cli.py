# cli.py
import click

from file_gateway.config.settings import Settings
from file_gateway.main import run_server


@click.group()
def cli():
    """CLI commands for running and inspecting the File Gateway"""
    pass


@cli.command()
@click.option("--host", default=None, help="Bind address (overrides HOST)")
@click.option("--port", type=int, default=None, help="Listen port (overrides PORT)")
def serve(host, port):
    """Run the HTTP server until interrupted"""
    overrides = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    run_server(Settings(**overrides))


@cli.command()
def show_config():
    """Show current configuration"""
    settings = Settings()

    click.echo("Current Configuration:")
    click.echo(f"  Host: {settings.host}")
    click.echo(f"  Port: {settings.port}")
    click.echo(f"  Upload Dir: {settings.upload_dir}")
    click.echo(f"  Upload Root: {settings.upload_root}")
    click.echo(f"  Served Under: {settings.upload_url_path}")
    click.echo(f"  Base URL: {settings.base_url}")
    click.echo(f"  Max Upload Bytes: {settings.max_upload_bytes}")
    click.echo(f"  User ID: {settings.default_user_id}")
    click.echo(f"  Log Level: {settings.log_level}")


if __name__ == "__main__":
    cli()
