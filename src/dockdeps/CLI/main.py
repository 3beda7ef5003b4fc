"""
Command Line Interface for dockdeps.
"""
import click

from ..MODELS.settings import ResolverSettings
from ..PARSERS.settings_parser import load_settings
from ..REGISTRY.base_image_resolver import BaseImageResolver
from ..RESOLVERS.dependency_resolver import DependencyResolver
from ..RESOLVERS.port_extractor import PortExtractor
from ..UTILS.logger import setup_logger
from ..exceptions import DockdepsError


@click.group()
@click.option('--config', '-c', 'config_path', default=None, help='Settings file (YAML)')
@click.option('--verbose', '-v', is_flag=True, help='Log debug output')
@click.pass_context
def cli(ctx, config_path, verbose):
    """
    dockdeps - Dockerfile dependency and port resolution.

    Lists the workspace files a Dockerfile build depends on, or the ports the
    image exposes.
    """
    setup_logger(debug=verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj['settings'] = load_settings(config_path)
    except DockdepsError as e:
        raise click.ClickException(str(e))


def _settings(ctx) -> ResolverSettings:
    return ctx.obj.get('settings') or ResolverSettings()


@cli.command()
@click.argument('dockerfile', default='Dockerfile')
@click.option('--workspace', '-w', default='.', help='Build context root')
@click.pass_context
def deps(ctx, dockerfile, workspace):
    """List the files a Dockerfile build depends on."""
    settings = _settings(ctx)
    resolver = DependencyResolver(settings=settings)
    try:
        result = resolver.resolve(dockerfile, workspace)
    except DockdepsError as e:
        raise click.ClickException(str(e))
    for path in result.paths:
        click.echo(path)


@cli.command()
@click.argument('dockerfile', type=click.Path(dir_okay=False), default='Dockerfile')
@click.pass_context
def ports(ctx, dockerfile):
    """List the ports an image exposes or inherits."""
    extractor = PortExtractor(BaseImageResolver(settings=_settings(ctx)))
    try:
        with open(dockerfile, 'rb') as f:
            result = extractor.extract(f)
    except OSError as e:
        raise click.ClickException(f"opening dockerfile {dockerfile}: {e}")
    except DockdepsError as e:
        raise click.ClickException(str(e))
    for port in result.ports:
        click.echo(port)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
