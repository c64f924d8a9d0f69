"""
Main CLI interface for karaoke-remix

Command groups:
- serve: run the HTTP API
- rewrite: run one rewrite in-process and print the result
- search: query the song catalog
- providers: list lyrics providers with enabled/credential status
- config: show or validate the active configuration
"""

import sys
import asyncio
import functools

import aiohttp
import click

from . import __version__
from .catalog.itunes import CatalogClient
from .config.settings import get_settings, reload_settings
from .lyrics.models import LyricsSource
from .server.app import run_server
from .server.pipeline import RewriteInput, RewritePipeline
from .utils.logger import configure_from_settings, get_logger, get_current_log_file


logger = get_logger(__name__)

# Credential each provider needs, if any
PROVIDER_CREDENTIALS = {
    LyricsSource.LYRICS_OVH: None,
    LyricsSource.FLYLYRICS: None,
    LyricsSource.AUDD: 'AUDD_API_TOKEN',
    LyricsSource.GENIUS: 'GENIUS_ACCESS_TOKEN',
}


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    Prints a short message and exits with status 1 on failure, 130 on
    Ctrl+C. The full error is logged.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


async def run_rewrite(settings, rewrite_input: RewriteInput):
    async with aiohttp.ClientSession(headers={'User-Agent': settings.network.user_agent}) as session:
        pipeline = RewritePipeline.from_session(session, settings)
        return await pipeline.run(rewrite_input)


async def run_search(settings, term: str, limit: int):
    async with aiohttp.ClientSession(headers={'User-Agent': settings.network.user_agent}) as session:
        return await CatalogClient(session, settings).search(term, limit)


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    karaoke-remix - rewrite song lyrics around a theme

    Fetches the original lyrics from a lyrics provider and asks a language
    model to rewrite them while keeping rhythm, syllables and rhyme.
    """
    ctx.ensure_object(dict)

    if version:
        click.echo(f"karaoke-remix v{__version__}")
        return

    settings = reload_settings(config) if config else get_settings()

    if verbose:
        settings.logging.level = "DEBUG"
        ctx.obj['verbose'] = True

    configure_from_settings(settings)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option('--host', help='Bind address')
@click.option('--port', type=int, help='Bind port')
@handle_error
def serve(host, port):
    """Run the rewrite API server"""
    settings = get_settings()
    if host:
        settings.server.host = host
    if port:
        settings.server.port = port

    problems = settings.validate()
    if problems:
        raise click.ClickException("Invalid configuration: " + "; ".join(problems))

    run_server(settings)


@cli.command()
@click.argument('title')
@click.argument('artist')
@click.argument('theme')
@click.option('--provider', '-p', help='Lyrics provider (lyrics_ovh, flylyrics, audd, genius)')
@click.option('--model', '-m', help='Model identifier from the allow-list')
@handle_error
def rewrite(title, artist, theme, provider, model):
    """
    Rewrite the lyrics of TITLE by ARTIST in the theme of THEME

    Runs the same pipeline as the server, once, and prints the result.
    """
    settings = get_settings()
    rewrite_input = RewriteInput(
        title=title,
        artist=artist,
        theme=theme,
        provider=provider or settings.lyrics.default_provider,
        model=model,
    )

    output = asyncio.run(run_rewrite(settings, rewrite_input))

    click.echo(output.lyrics)
    if output.apple_music_url:
        click.echo(f"\nApple Music: {output.apple_music_url}")


@cli.command()
@click.argument('term')
@click.option('--limit', '-n', type=int, help='Maximum number of results')
@handle_error
def search(term, limit):
    """Search the song catalog"""
    settings = get_settings()
    tracks = asyncio.run(run_search(settings, term, limit or settings.catalog.limit))

    if not tracks:
        click.echo("No songs found")
        return

    for i, track in enumerate(tracks, 1):
        click.echo(f"   {i}. {track.artist} - {track.title}")
        if track.url:
            click.echo(f"      {track.url}")


@cli.command()
def providers():
    """List lyrics providers and whether they can be used"""
    settings = get_settings()
    credentials = settings.credential_status()
    enabled = {LyricsSource.from_request(p) for p in settings.lyrics.enabled_providers}

    click.echo("Lyrics providers:\n")
    for source, env_var in PROVIDER_CREDENTIALS.items():
        state = click.style('enabled', fg='green') if source in enabled else click.style('disabled', fg='yellow')
        default = " (default)" if LyricsSource.from_request(settings.lyrics.default_provider) == source else ""
        line = f"   {source.value:<12} {state}{default}"
        if env_var:
            line += f"   {env_var}: {'set' if credentials[env_var] else 'missing'}"
        click.echo(line)


@cli.group()
def config():
    """Configuration management"""
    pass


@config.command()
def show():
    """
    Show current configuration

    Credentials are reported as set/missing, never printed.
    """
    settings = get_settings()

    click.echo("Current Configuration:\n")

    click.echo("Server:")
    click.echo(f"   Address: {settings.server.host}:{settings.server.port}")
    click.echo(f"   Lyrics route: {settings.server.lyrics_path}")
    click.echo(f"   Search route: {settings.server.search_path}")

    click.echo("\nLyrics:")
    click.echo(f"   Default provider: {settings.lyrics.default_provider}")
    click.echo(f"   Enabled providers: {', '.join(settings.lyrics.enabled_providers)}")

    click.echo("\nCompletion:")
    click.echo(f"   Default model: {settings.completion.default_model}")
    click.echo(f"   Allowed models: {', '.join(settings.completion.allowed_models)}")

    click.echo("\nCatalog:")
    click.echo(f"   Apple Music link: {settings.catalog.include_link}")

    click.echo("\nCredentials:")
    for env_var, present in settings.credential_status().items():
        click.echo(f"   {env_var}: {'set' if present else 'missing'}")

    current_log = get_current_log_file()
    click.echo(f"\nLogging: {current_log if current_log else 'Console only'}")


@config.command()
def validate():
    """Check the configuration for problems"""
    problems = get_settings().validate()
    if not problems:
        click.echo(click.style("Configuration is valid", fg='green'))
        return

    click.echo(f"Found {len(problems)} issues:")
    for problem in problems:
        click.echo(f"   - {problem}")
    sys.exit(1)


# Entry point for module execution
if __name__ == '__main__':
    cli()
