"""Command-line interface for the async stringifier."""

import asyncio
import json
import logging
import sys
import click
from pathlib import Path
from .error_handler import ErrorHandler
from .stringifier import AsyncStringifier
from .transforms import chain, inline_json_files, redact_keys


@click.group()
@click.version_option(version="1.0.0")
def main():
    """Async Stringify - Render JSON through asynchronous node transforms."""
    pass


@main.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--indent', '-i', type=int, default=None, help='Indent with this many spaces (max 10)')
@click.option('--indent-string', default=None, help='Indent with this literal string (first 10 chars)')
@click.option('--redact', '-r', multiple=True, help='Drop members with this key (repeatable)')
@click.option('--inline-files', is_flag=True, help='Replace {"$file": path} objects by the file contents')
@click.option('--ascii', 'ensure_ascii', is_flag=True, help='Escape non-ASCII characters')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path), help='Output file path')
@click.option('--profile', is_flag=True, help='Print a performance summary to stderr')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
def render(input_file: Path, indent, indent_string, redact, inline_files: bool,
           ensure_ascii: bool, output, profile: bool, verbose: bool):
    """Render a JSON file through the selected transforms."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        document = json.loads(input_file.read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        click.echo(f"❌ Invalid JSON in {input_file}: {e.msg} at line {e.lineno}, column {e.colno}", err=True)
        sys.exit(1)

    transform = chain(
        redact_keys(redact) if redact else None,
        inline_json_files(input_file.parent) if inline_files else None,
    )
    space = indent_string if indent_string is not None else indent

    stringifier = AsyncStringifier(ensure_ascii=ensure_ascii, enable_profiling=profile)
    try:
        text = asyncio.run(stringifier.stringify(document, transform, space))
    except Exception as e:
        response = ErrorHandler().handle_stringify_error(e)
        click.echo(f"❌ Error: {e}", err=True)
        click.echo(f"   • {response.suggested_action}", err=True)
        sys.exit(1)

    if text is None:
        click.echo("❌ Document resolved to nothing serializable", err=True)
        sys.exit(1)

    if output:
        output.write_text(text, encoding='utf-8')
        click.echo(f"✅ Successfully wrote JSON to {output}")
    else:
        click.echo(text)

    if profile:
        click.echo(stringifier.profiler.export_metrics("summary"), err=True)


if __name__ == '__main__':
    main()
