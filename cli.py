#!/usr/bin/env python3
"""
CLI tool for generating DJ transition scripts.

Provides commands for generating scripts, building a personal style profile,
listing styles, extracting article text and checking setup without needing
the web API.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from quipsync.services import operations  # noqa: E402
from quipsync.styles import (  # noqa: E402
    DEFAULT_STYLE_ID,
    PERSONAL_STYLE_ID,
    SCRIPT_STYLES,
    get_available_styles,
)
from quipsync.utils.errors import APIError, CacheError  # noqa: E402
from quipsync.utils.extraction import ArticleExtractor  # noqa: E402
from quipsync.utils.llm_constants import SCRIPT_SLOTS  # noqa: E402
from quipsync.utils.prompt_builder import split_song_phrase  # noqa: E402

logging.basicConfig(
    level=logging.WARNING if os.getenv('FLASK_ENV') != 'development' else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

PROVIDER_KEY_VARS = {
    "gemini": "GOOGLE_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def resolve_song(song: str, artist: Optional[str]) -> Tuple[str, str]:
    """
    Get (title, artist) from CLI options.

    When --artist is omitted, --song may be given as "Title by Artist".
    """
    if artist:
        return song.strip(), artist.strip()
    title, parsed_artist = split_song_phrase(song)
    if not parsed_artist:
        raise click.UsageError(
            'Provide --artist, or give --song as "Song Title by Artist".'
        )
    return title, parsed_artist


def load_personal_style(path: str) -> Dict[str, Any]:
    """Load a StyleProfile JSON file written by the style-profile command."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise click.BadParameter(f"Could not read personal style file: {e}", param_hint="--personal-style")


def format_scripts(result: Dict[str, Any]) -> str:
    """Format a ScriptResult for terminal output, labelling scripts by position."""
    lines = [
        "STORY",
        f"  {result['storyDetails']}",
        "",
        "SONG",
        f"  {result['songAnalysis']}",
        "",
        "WHY THIS WORKS",
        f"  {result['whyThisWorks']}",
    ]
    for position, (slot, entry) in enumerate(zip(SCRIPT_SLOTS, result['scripts']), start=1):
        word_count = len(entry['script'].split())
        lines.extend([
            "",
            f"SCRIPT {position} ({slot['name']}, {slot['timing']}, {word_count} words)",
            f"  {entry['script']}",
            f"  Delivery: {entry['deliveryNotes']}",
        ])
    return "\n".join(lines)


def fail(error: Dict[str, str]) -> None:
    click.echo(f"Error ({error['kind']} at {error['stage']}): {error['message']}", err=True)
    sys.exit(1)


@click.group()
def cli():
    """QuipSync: radio transition scripts from a story and a song."""
    pass


@cli.command()
@click.argument('story')
@click.option('--song', required=True, help='Song title, or "Song Title by Artist"')
@click.option('--artist', help='Artist name')
@click.option('--style', 'style_selection', default=DEFAULT_STYLE_ID,
              type=click.Choice(list(SCRIPT_STYLES) + [PERSONAL_STYLE_ID]),
              help=f'Script style (default: {DEFAULT_STYLE_ID})')
@click.option('--pg-safe/--no-pg-safe', default=True, help='Keep content PG-safe (default: on)')
@click.option('--personal-style', 'personal_style_path', type=click.Path(exists=True, dir_okay=False),
              help='StyleProfile JSON file (selects the personal style)')
@click.option('--json', 'as_json', is_flag=True, help='Print the raw ScriptResult JSON')
def generate(
    story: str,
    song: str,
    artist: Optional[str],
    style_selection: str,
    pg_safe: bool,
    personal_style_path: Optional[str],
    as_json: bool,
) -> None:
    """
    Generate three transition scripts.

    STORY is the story text or an http(s) URL to extract it from.
    """
    song_title, artist_name = resolve_song(song, artist)

    payload: Dict[str, Any] = {
        "storyInput": story,
        "songTitle": song_title,
        "artist": artist_name,
        "styleSelection": style_selection,
        "pgSafe": pg_safe,
    }
    if personal_style_path:
        payload["styleSelection"] = PERSONAL_STYLE_ID
        payload["personalStyle"] = load_personal_style(personal_style_path)

    result = operations.generate_scripts(payload)
    if not result.ok:
        fail(result.error)

    if as_json:
        click.echo(json.dumps(result.data, indent=2, ensure_ascii=False))
    else:
        click.echo(format_scripts(result.data))


@cli.command('style-profile')
@click.option('--description', required=True, help='How you describe your on-air style')
@click.option('--sample', 'samples', multiple=True, required=True,
              type=click.Path(exists=True, dir_okay=False),
              help='Text file with one of your scripts (repeatable)')
@click.option('--output', '-o', type=click.Path(dir_okay=False),
              help='Write the StyleProfile JSON to this file')
def style_profile(description: str, samples: Tuple[str, ...], output: Optional[str]) -> None:
    """Build a personal style profile from your own scripts."""
    script_samples = [Path(path).read_text(encoding='utf-8') for path in samples]

    result = operations.create_style_profile({
        "styleDescription": description,
        "scriptSamples": script_samples,
    })
    if not result.ok:
        fail(result.error)

    profile_json = json.dumps(result.data, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(profile_json + "\n", encoding='utf-8')
        click.echo(f"✓ Style profile saved to {output}")
        click.echo(f"  Use it with: generate --personal-style {output} ...")
    else:
        click.echo(profile_json)


@cli.command()
def styles() -> None:
    """List the available script styles."""
    for style in get_available_styles():
        click.echo(f"{style['id']:<16} {style['name']:<16} {style['description']}")
    click.echo(f"{PERSONAL_STYLE_ID:<16} {'Personal':<16} Your own style (needs --personal-style)")


@cli.command()
@click.argument('url')
def extract(url: str) -> None:
    """Print the readable article text at URL."""
    try:
        text = ArticleExtractor().extract_text(url)
    except APIError as e:
        fail(e.to_dict())
    if not text:
        click.echo("No article text found.", err=True)
        sys.exit(1)
    click.echo(text)


@cli.command('check-setup')
def check_setup() -> None:
    """Check provider credentials and cache configuration."""
    from quipsync.providers import create_provider
    from quipsync.utils.cache import create_script_cache

    click.echo("🔍 Checking QuipSync setup...\n")
    all_checks_passed = True

    provider_name = os.getenv("LLM_PROVIDER", "gemini").lower()
    key_var = PROVIDER_KEY_VARS.get(provider_name)
    click.echo(f"1. Completion provider: {provider_name}")
    if key_var is None:
        click.echo(f"   ❌ Unknown provider. Set LLM_PROVIDER to one of: {', '.join(PROVIDER_KEY_VARS)}\n")
        all_checks_passed = False
    elif not os.getenv(key_var):
        click.echo(f"   ❌ {key_var} not set\n")
        all_checks_passed = False
    else:
        try:
            provider = create_provider(provider_name)
            click.echo(f"   ✅ {key_var} is set (model: {provider.model_name})\n")
        except ValueError as e:
            click.echo(f"   ❌ {e}\n")
            all_checks_passed = False

    backend = os.getenv("SCRIPT_CACHE_BACKEND", "sqlite")
    click.echo(f"2. Script cache: {backend}")
    try:
        create_script_cache()
        click.echo("   ✅ Cache backend configured\n")
    except (ValueError, CacheError) as e:
        click.echo(f"   ❌ {e}\n")
        all_checks_passed = False

    click.echo("=" * 50)
    if all_checks_passed:
        click.echo("✅ All checks passed! Setup is complete.")
    else:
        click.echo("❌ Some checks failed. Please fix the issues above.")
    click.echo("=" * 50)

    if not all_checks_passed:
        sys.exit(1)


if __name__ == '__main__':
    cli()
