#!/usr/bin/env python3

import click
import datetime
import json
import logging
import mimetypes
import os
import sys
import uuid
from click_default_group import DefaultGroup

import epub_builder
from epub_builder import (
    CoverOptions,
    EpubBuilder,
    EpubContent,
    MetadataOpf,
    ReferenceType,
    TocElement,
)
from epub_builder.common import sanitize_filename

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS = {
    'epub_version': 2,
    'zip_command': None,
    'escape_html': True,
    'inline_toc': False,
    'generate_cover': False,
    'cover': {},
}


def configure_logging(verbose):
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="[%(name)s @ %(levelname)s] %(message)s"
        )
    else:
        logging.basicConfig(
            level=logging.INFO,
            format="[%(name)s] %(message)s"
        )


def load_on_disk_options(path='epubgen.json'):
    try:
        with open(path) as store_file:
            return json.load(store_file)
    except FileNotFoundError:
        logger.debug("Unable to locate %s. Continuing assuming it does not exist.", path)
        return {}


def load_book(path):
    with open(path) as book_file:
        return json.load(book_file)


def create_options(book, flags):
    """Compiles options from the defaults, epubgen.json, the book itself and
    the command line flags (in that order of precedence, lowest first)."""
    on_disk = load_on_disk_options()
    options = {
        **DEFAULT_OPTIONS,
        **on_disk,
        **book.get('options', {}),
        **{k: v for k, v in flags.items() if v is not None},
    }
    options['cover'] = {
        **on_disk.get('cover', {}),
        **book.get('options', {}).get('cover', {}),
    }
    return options


def _as_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _parse_date(value):
    # fromisoformat doesn't take a trailing Z before python 3.11
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return datetime.datetime.fromisoformat(value)


def _read_file(base_dir, entry):
    if 'text' in entry:
        return entry['text']
    with open(os.path.join(base_dir, entry['file']), 'rb') as f:
        return f.read()


def _mime_type(entry):
    if 'mime' in entry:
        return entry['mime']
    mime, _ = mimetypes.guess_type(entry['path'])
    return mime or 'application/octet-stream'


def toc_element_from_json(entry):
    element = TocElement(entry['href'], entry.get('title', ''), level=entry.get('level', 1))
    if 'raw_title' in entry:
        element.with_raw_title(entry['raw_title'])
    for child in entry.get('children', []):
        element.child(toc_element_from_json(child))
    return element


def content_from_json(entry, base_dir, read=True):
    content = EpubContent(entry['path'], read and _read_file(base_dir, entry) or b'')
    if 'title' in entry:
        content.title(entry['title'])
    if 'raw_title' in entry:
        content.raw_title(entry['raw_title'])
    if 'level' in entry:
        content.level(entry['level'])
    if 'reftype' in entry:
        content.reftype(ReferenceType.parse(entry['reftype']))
    for child in entry.get('children', []):
        content.child(toc_element_from_json(child))
    return content


def set_metadata(builder, book):
    for key in ('title', 'lang', 'generator', 'license', 'toc_name', 'direction'):
        if key in book:
            builder.metadata(key, book[key])
    for key in ('author', 'description', 'subject'):
        for value in _as_list(book.get(key)):
            builder.metadata(key, value)
    for meta in book.get('meta', []):
        builder.add_metadata_opf(MetadataOpf(meta['name'], meta['content']))
    if 'uuid' in book:
        builder.set_uuid(uuid.UUID(book['uuid']))
    if 'published' in book:
        builder.set_publication_date(_parse_date(book['published']))
    if 'modified' in book:
        builder.set_modified_date(_parse_date(book['modified']))


def add_cover(builder, book, base_dir, options):
    if 'cover_image' in book:
        cover = book['cover_image']
        builder.add_cover_image(cover['path'], _read_file(base_dir, cover), _mime_type(cover))
        return

    cover_options = CoverOptions.from_options(options.get('cover'))
    title = book.get('title', 'Untitled')
    author = ', '.join(_as_list(book.get('author'))) or 'Unknown'
    if cover_options.cover_url:
        image = epub_builder.make_cover_from_url(cover_options.cover_url, title, author)
    elif options.get('generate_cover'):
        image = epub_builder.make_cover(title, author, **cover_options.drawing_options())
    else:
        return
    builder.add_cover_image('cover.png', image, 'image/png')


def create_zip(options):
    if options.get('zip_command'):
        return epub_builder.zip_command_or_library(options['zip_command'])
    return epub_builder.ZipLibrary()


def build_epub(book, base_dir, options):
    builder = EpubBuilder(create_zip(options))
    builder.epub_version(options['epub_version'])
    builder.escape_html(options['escape_html'])
    set_metadata(builder, book)

    if 'stylesheet' in book:
        with open(os.path.join(base_dir, book['stylesheet']), 'rb') as f:
            builder.stylesheet(f)
    add_cover(builder, book, base_dir, options)
    for resource in book.get('resources', []):
        builder.add_resource(resource['path'], _read_file(base_dir, resource), _mime_type(resource))

    if options['inline_toc']:
        builder.inline_toc()
    for entry in book.get('contents', []):
        builder.add_content(content_from_json(entry, base_dir))
    return builder


@click.group(cls=DefaultGroup, default='build')
def cli():
    """Top level click group. Building a book is the default command."""
    pass


@cli.command()
@click.argument('book_json', type=click.Path(exists=True, dir_okay=False))
@click.option('--output-dir', default=None, help='Directory to save generated ebooks')
@click.option('--output', '-o', default=None, help='Filename of the generated ebook')
@click.option('--epub-version', type=click.Choice(['2', '3']), default=None, help="EPUB 2.0.1 or 3.0.1")
@click.option('--zip-command', default=None, help="Package with this zip program instead of zipfile")
@click.option('--escape/--no-escape', 'escape_html', default=None, help="Whether to HTML-escape titles and metadata")
@click.option('--inline-toc/--no-inline-toc', default=None, help="Whether to add the table of contents as a page")
@click.option('--verbose', '-v', is_flag=True, help="Verbose debugging output")
def build(book_json, output_dir, output, epub_version, zip_command, escape_html, inline_toc, verbose):
    """Builds an epub ebook out of a JSON book description."""
    configure_logging(verbose)
    book = load_book(book_json)
    options = create_options(book, {
        'epub_version': epub_version,
        'zip_command': zip_command,
        'escape_html': escape_html,
        'inline_toc': inline_toc,
        'output_dir': output_dir,
    })
    base_dir = os.path.dirname(os.path.abspath(book_json))

    filename = output or sanitize_filename(book.get('title', 'Untitled')) + '.epub'
    filename = os.path.join(options.get('output_dir') or os.getcwd(), filename)
    try:
        builder = build_epub(book, base_dir, options)
        builder.generate(filename)
    except (epub_builder.EpubBuilderException, OSError, KeyError, ValueError) as e:
        logger.error("Couldn't build %s: %s", book_json, e)
        logger.warning("No ebook created")
        sys.exit(1)
    logger.info("File created: " + filename)


@cli.command()
@click.argument('book_json', type=click.Path(exists=True, dir_okay=False))
@click.option('--numbered/--no-numbered', default=True, help="Use <ol> rather than <ul>")
@click.option('--ncx', is_flag=True, help="Show the toc.ncx navPoints rather than the nav.xhtml list")
@click.option('--escape/--no-escape', 'escape_html', default=True, help="Whether to HTML-escape titles")
def toc(book_json, numbered, ncx, escape_html):
    """Shows the table of contents a JSON book description would get."""
    book = load_book(book_json)
    builder = EpubBuilder(epub_builder.ZipLibrary())
    for entry in book.get('contents', []):
        builder.add_content(content_from_json(entry, None, read=False))
    if ncx:
        click.echo(builder.toc.render_epub(escape_html))
    else:
        click.echo(builder.toc.render(numbered, escape_html))


if __name__ == '__main__':
    cli()
