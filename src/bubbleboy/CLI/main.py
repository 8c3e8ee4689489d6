"""
Command Line Interface for Bubble Boy.
"""
import os

import click
import yaml

from ..PARSERS.config_parser import ConfigParser, apply_flags
from ..RUNNERS.session_runner import SessionCommand, SessionRunner
from ..errors import BubbleBoyError


def _fail(error: BubbleBoyError):
    click.echo(f"Error: {error}", err=True)
    raise SystemExit(1)


def _runner(ctx) -> SessionRunner:
    if 'runner' not in ctx.obj:
        ctx.obj['runner'] = SessionRunner(
            ctx.obj['config'],
            api=ctx.obj.get('api'),
            project_dir=ctx.obj.get('project_dir'),
            handle_signals=ctx.obj.get('handle_signals', True),
        )
    return ctx.obj['runner']


def _run_session(ctx, command: SessionCommand):
    runner = _runner(ctx)
    try:
        if ctx.obj['dry_run']:
            plan = runner.plan(command, force_rebuild=ctx.obj['no_cache'])
            click.echo(yaml.safe_dump(plan.model_dump(), sort_keys=False), nl=False)
            return
        exit_code = runner.run(command, force_rebuild=ctx.obj['no_cache'])
    except BubbleBoyError as e:
        _fail(e)
    ctx.exit(exit_code)


@click.group(invoke_without_command=True)
@click.option('--with-php', 'php', metavar='VERSION', help='Include PHP (8.1, 8.2, 8.3)')
@click.option('--with-node', 'node', metavar='VERSION', help='Include Node.js (18, 20, 22)')
@click.option('--with-rust', 'rust', is_flag=True, help='Include the Rust toolchain')
@click.option('--with-go', 'go', metavar='VERSION', help='Include Go (1.22, 1.23)')
@click.option('--with-mysql', 'mysql', is_flag=False, flag_value='8.0', default=None,
              metavar='[VERSION]', help='Start a MySQL service (default 8.0)')
@click.option('--with-redis', 'redis', is_flag=True, help='Start a Redis service')
@click.option('--with-postgres', 'postgres', is_flag=False, flag_value='16', default=None,
              metavar='[VERSION]', help='Start a PostgreSQL service (default 16)')
@click.option('--network', help='Docker network name')
@click.option('--name', help='Dev container name')
@click.option('--shell', help='Shell to open in the container (default: $SHELL)')
@click.option('--no-cache', is_flag=True, help='Rebuild the image even if it is cached')
@click.option('--dry-run', is_flag=True, help='Show what would run without touching Docker')
@click.pass_context
def cli(ctx, php, node, rust, go, mysql, redis, postgres, network, name, shell, no_cache, dry_run):
    """
    Bubble Boy - ephemeral Docker dev containers.

    Builds a dev image with the requested runtimes, starts the requested
    services next to it and opens a shell in /workspace. Everything except
    service data volumes is removed on exit.
    """
    ctx.ensure_object(dict)
    project_dir = ctx.obj.get('project_dir') or os.getcwd()
    try:
        config = ConfigParser().load(project_dir, global_path=ctx.obj.get('global_config'))
        apply_flags(config, php=php, node=node, rust=rust, go=go, mysql=mysql, redis=redis,
                    postgres=postgres, network=network, name=name, shell=shell)
    except BubbleBoyError as e:
        _fail(e)

    ctx.obj['config'] = config
    ctx.obj['no_cache'] = no_cache
    ctx.obj['dry_run'] = dry_run

    if ctx.invoked_subcommand is None:
        _run_session(ctx, SessionCommand.shell())


@cli.command()
@click.pass_context
def shell(ctx):
    """Open an interactive shell in the container (default)."""
    _run_session(ctx, SessionCommand.shell())


@cli.command(context_settings={'ignore_unknown_options': True, 'allow_interspersed_args': False})
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def claude(ctx, args):
    """Run Claude Code inside the container."""
    _run_session(ctx, SessionCommand.claude(list(args)))


@cli.command(context_settings={'ignore_unknown_options': True, 'allow_interspersed_args': False})
@click.argument('args', nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def chief(ctx, args):
    """Run Chief (autonomous Claude Code task runner) inside the container."""
    _run_session(ctx, SessionCommand.chief(list(args)))


@cli.command(name='exec', context_settings={'ignore_unknown_options': True, 'allow_interspersed_args': False})
@click.argument('cmd', nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def exec_(ctx, cmd):
    """Run a command inside the container and exit with its status."""
    _run_session(ctx, SessionCommand.exec(list(cmd)))


@cli.command()
@click.pass_context
def build(ctx):
    """Build the image without starting a container."""
    runner = _runner(ctx)
    try:
        if ctx.obj['dry_run']:
            plan = runner.plan(force_rebuild=ctx.obj['no_cache'])
            click.echo(f"Would build {plan.image}")
            return
        result = runner.build(force_rebuild=ctx.obj['no_cache'])
    except BubbleBoyError as e:
        _fail(e)
    state = "cached" if result.cached else "built"
    click.echo(f"Image {result.tag} ({state})")


@cli.command()
@click.pass_context
def config(ctx):
    """Show the resolved configuration."""
    data = ctx.obj['config'].model_dump()
    click.echo(yaml.safe_dump(data, sort_keys=False), nl=False)


@cli.command()
@click.option('--volumes', is_flag=True, help='Also remove named service volumes')
@click.pass_context
def clean(ctx, volumes):
    """Remove Bubble Boy containers, images, networks and optionally volumes."""
    try:
        report = _runner(ctx).clean(volumes=volumes)
    except BubbleBoyError as e:
        _fail(e)
    click.echo(f"Removed {len(report.containers)} container(s), {len(report.images)} image(s), "
               f"{len(report.networks)} network(s), {len(report.volumes)} volume(s)")
    for warning in report.warnings:
        click.echo(f"Warning: {warning}", err=True)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
