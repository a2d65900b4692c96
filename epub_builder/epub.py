"""
So, an epub is approximately a zipfile of HTML files, with
a bit of metadata thrown in for good measure.

EpubBuilder collects the metadata, the content documents and the resources,
and works out the table of contents as content gets added. generate() then
renders content.opf, toc.ncx and nav.xhtml and packages everything with a Zip.
"""
import datetime
import enum
import logging
import posixpath
from uuid import UUID, uuid4
from attrs import define, Factory

from . import templates
from .common import encode_attribute, encode_html, indent, to_id
from .content import ReferenceType
from .errors import EpubVersionError, InvalidMetadataError, PageDirectionError
from .toc import Toc, TocElement

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y-%m-%dT%H:%M:%SZ'


class EpubVersion(enum.IntEnum):
    V20 = 20  # EPUB 2.0.1
    V30 = 30  # EPUB 3.0.1

    @classmethod
    def parse(cls, version):
        """Accepts a member, 20 or 30, or a major version like 2, "3" or "2.0.1"."""
        if isinstance(version, cls):
            return version
        try:
            number = int(str(version).split('.')[0])
        except ValueError:
            raise EpubVersionError(f"Invalid EPUB version: {version!r}") from None
        if number < 10:
            number *= 10
        for member in cls:
            if member == number:
                return member
        raise EpubVersionError(f"Unsupported EPUB version: {version!r}")


class PageDirection(enum.Enum):
    """Page progression direction of the spine, for the whole book."""
    LTR = 'ltr'
    RTL = 'rtl'

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, s):
        try:
            return cls(s.lower())
        except ValueError:
            raise PageDirectionError(f"Invalid page direction: {s}") from None


@define
class MetadataOpf:
    """A custom <meta name="..." content="..."/> for content.opf."""
    name: str
    content: str


@define
class Metadata:
    title: str = ''
    author: list = Factory(list)
    lang: str = 'en'
    direction: PageDirection = PageDirection.LTR
    generator: str = 'epub-builder'
    toc_name: str = 'Table Of Contents'
    description: list = Factory(list)
    subject: list = Factory(list)
    license: str = None
    date_published: datetime.datetime = None
    date_modified: datetime.datetime = None
    uuid: UUID = None


@define
class _File:
    """Something that goes in the manifest."""
    file: str
    mime: str
    itemref: bool = False
    cover: bool = False
    reftype: ReferenceType = None
    title: str = ''


def _format_date(date):
    if date.tzinfo is not None:
        date = date.astimezone(datetime.timezone.utc)
    return date.strftime(DATE_FORMAT)


class EpubBuilder:
    """The thing you actually use to make an EPUB.

    Create it with a Zip, set metadata, add content and resources, and call
    generate():

        builder = EpubBuilder(ZipLibrary())
        builder.metadata('title', 'Empty EPUB').metadata('author', "Ann 'Onymous")
        builder.add_content(EpubContent('chapter_1.xhtml', text).title('Chapter 1'))
        data = builder.generate('book.epub')
    """

    def __init__(self, zip):
        self.version = EpubVersion.V20
        self.zip = zip
        self.files = []
        self.meta = Metadata()
        self.toc = Toc()
        self.meta_opf = []
        self._stylesheet = False
        self._inline_toc = False
        self._escape_html = True

        self.zip.write_file('META-INF/container.xml', templates.CONTAINER)
        self.zip.write_file('META-INF/com.apple.ibooks.display-options.xml', templates.IBOOKS)

    def epub_version(self, version):
        self.version = EpubVersion.parse(version)
        return self

    def epub_direction(self, direction):
        if not isinstance(direction, PageDirection):
            direction = PageDirection.parse(direction)
        self.meta.direction = direction
        return self

    def add_metadata_opf(self, item):
        """Add e.g. MetadataOpf('primary-writing-mode', 'vertical-rl')."""
        self.meta_opf.append(item)
        return self

    def escape_html(self, escape=True):
        """Whether free text (titles, descriptions...) gets HTML-escaped.

        Turn this off only if you escape things yourself: the text ends up
        in XML documents as-is.
        """
        self._escape_html = escape
        return self

    def metadata(self, key, value):
        """Set some metadata.

        author, description and subject can have several values: this adds
        to them, unless value is "", which clears them. Other keys (title,
        lang, direction, generator, license, toc_name) get replaced.
        """
        if key in ('author', 'description', 'subject'):
            values = getattr(self.meta, key)
            if value:
                values.append(value)
            else:
                values.clear()
        elif key == 'direction':
            self.meta.direction = PageDirection.parse(value)
        elif key in ('title', 'lang', 'generator', 'license', 'toc_name'):
            setattr(self.meta, key, value)
        else:
            raise InvalidMetadataError(f"Invalid metadata key: {key}")
        return self

    def set_authors(self, authors):
        self.meta.author = list(authors)

    def add_author(self, author):
        self.meta.author.append(author)

    def clear_authors(self):
        self.meta.author.clear()

    def set_title(self, title):
        self.meta.title = title

    def set_lang(self, lang):
        """Quite important, as readers rely on it for e.g. hyphenation."""
        self.meta.lang = lang

    def set_generator(self, generator):
        self.meta.generator = generator

    def set_toc_name(self, toc_name):
        self.meta.toc_name = toc_name

    def set_description(self, description):
        self.meta.description = list(description)

    def add_description(self, description):
        self.meta.description.append(description)

    def clear_description(self):
        self.meta.description.clear()

    def set_subjects(self, subjects):
        self.meta.subject = list(subjects)

    def add_subject(self, subject):
        self.meta.subject.append(subject)

    def clear_subjects(self):
        self.meta.subject.clear()

    def set_license(self, license):
        self.meta.license = license

    def set_publication_date(self, date):
        self.meta.date_published = date

    def set_modified_date(self, date):
        """Defaults to the time of generation."""
        self.meta.date_modified = date

    def set_uuid(self, book_uuid):
        """Set this to generate reproducible EPUBs."""
        self.meta.uuid = book_uuid

    def stylesheet(self, content):
        """Written as stylesheet.css, which the generated nav pages link to."""
        self.add_resource('stylesheet.css', content, 'text/css')
        self._stylesheet = True
        return self

    def inline_toc(self):
        """Include the table of contents as a page of the book.

        It's placed according to when this is called: before adding any
        content puts it at the start, after puts it at the end.
        """
        self._inline_toc = True
        self.toc.add(TocElement('toc.xhtml', self.meta.toc_name))
        self.files.append(_File(
            'toc.xhtml',
            'application/xhtml+xml',
            itemref=True,
            reftype=ReferenceType.TOC,
            title=self.meta.toc_name,
        ))
        return self

    def add_resource(self, path, content, mime_type):
        """Add a file that isn't part of the linear reading order: images,
        fonts, CSS...

        path is relative to the OEBPS directory, e.g. "data/image_0.png".
        """
        self.zip.write_file(posixpath.join('OEBPS', path), content)
        logger.debug("Add resource: %s", path)
        self.files.append(_File(path, mime_type))
        return self

    def add_cover_image(self, path, content, mime_type):
        """Like add_resource, but also flags the file as the cover image."""
        self.zip.write_file(posixpath.join('OEBPS', path), content)
        logger.debug("Add cover image: %s", path)
        self.files.append(_File(path, mime_type, cover=True))
        return self

    def add_content(self, content):
        """Add an EpubContent document to the book's reading order.

        It only shows up in the table of contents if it has a title.
        """
        self.zip.write_file(posixpath.join('OEBPS', content.toc.url), content.content)
        logger.debug("Add content: %s", content.toc.url)
        self.files.append(_File(
            content.toc.url,
            'application/xhtml+xml',
            itemref=True,
            reftype=content.reference_type,
            title=content.reference_type and content.toc.title or '',
        ))
        if content.toc.title:
            self.toc.add(content.toc)
        return self

    def generate(self, to=None):
        """Write all the generated files and package the EPUB.

        Returns the bytes of the archive; `to` can be a filename or a binary
        file object to write it to as well.
        """
        # If no stylesheet was provided, use an empty one
        if not self._stylesheet:
            self.stylesheet(b'')

        book_id = (self.meta.uuid or uuid4()).urn

        self.zip.write_file('OEBPS/content.opf', self.render_opf(book_id))
        self.zip.write_file('OEBPS/toc.ncx', self.render_toc(book_id))
        self.zip.write_file('OEBPS/nav.xhtml', self.render_nav(numbered=True))
        if self._inline_toc:
            self.zip.write_file('OEBPS/toc.xhtml', self.render_nav(numbered=False))

        return self.zip.generate(to)

    def _text(self, text):
        return encode_html(text, self._escape_html)

    def _authors(self):
        authors = []
        for i, author in enumerate(self.meta.author):
            if self.version >= EpubVersion.V30:
                creator_id = encode_attribute(f'epub-creator-{i}')
                authors.append(f'<dc:creator id="{creator_id}">{self._text(author)}</dc:creator>')
                authors.append(
                    f'<meta refines="#{creator_id}" property="role" scheme="marc:relators">aut</meta>'
                )
            else:
                authors.append(f'<dc:creator opf:role="aut">{self._text(author)}</dc:creator>')
        return authors

    def render_opf(self, book_id):
        logger.debug("render_opf...")
        optional = []
        for description in self.meta.description:
            optional.append(f'<dc:description>{self._text(description)}</dc:description>')
        for subject in self.meta.subject:
            optional.append(f'<dc:subject>{self._text(subject)}</dc:subject>')
        if self.meta.license is not None:
            optional.append(f'<dc:rights>{self._text(self.meta.license)}</dc:rights>')
        if self.meta.date_published is not None:
            date_published = _format_date(self.meta.date_published)
            if self.version >= EpubVersion.V30:
                optional.append(f'<dc:date>{date_published}</dc:date>')
            else:
                optional.append(f'<dc:date opf:event="publication">{date_published}</dc:date>')
        for meta in self.meta_opf:
            optional.append(
                f'<meta name="{self._text(meta.name)}" content="{self._text(meta.content)}"/>'
            )

        date_modified = _format_date(
            self.meta.date_modified or datetime.datetime.now(datetime.timezone.utc)
        )

        items = []
        itemrefs = []
        guide = []
        for file in self.files:
            file_id = file.cover and 'cover-image' or to_id(file.file)
            properties = ''
            if file.cover:
                optional.append('<meta name="cover" content="cover-image"/>')
                if self.version >= EpubVersion.V30:
                    properties = 'properties="cover-image" '
            logger.debug("id=%s, mime=%s", file_id, file.mime)
            items.append('<item media-type="{mime}" {properties}id="{id}" href="{href}"/>'.format(
                mime=encode_attribute(file.mime),
                properties=properties,
                id=encode_attribute(file_id),
                href=encode_attribute(file.file.replace('\\', '/')),
            ))
            if file.itemref:
                itemrefs.append(f'<itemref idref="{encode_attribute(file_id)}"/>')
            if file.reftype is not None:
                guide.append('<reference type="{type}" title="{title}" href="{href}"/>'.format(
                    type=encode_attribute(file.reftype.guide_type),
                    title=encode_attribute(file.title),
                    href=encode_attribute(file.file),
                ))

        template = self.version >= EpubVersion.V30 and templates.V3_CONTENT_OPF or templates.V2_CONTENT_OPF
        return templates.render(
            template,
            uuid=encode_html(book_id),
            title=self._text(self.meta.title),
            lang=encode_html(self.meta.lang),
            direction=self.meta.direction.value,
            generator_attr=encode_attribute(self.meta.generator),
            toc_name_attr=encode_attribute(self.meta.toc_name),
            date_modified=encode_html(date_modified),
            authors=indent('\n'.join(self._authors()), 2),
            optional=indent('\n'.join(optional), 2),
            items=indent('\n'.join(items), 2),
            itemrefs=indent('\n'.join(itemrefs), 2),
            guide=indent('\n'.join(guide), 2),
        )

    def render_toc(self, book_id):
        return templates.render(
            templates.TOC_NCX,
            uuid=encode_attribute(book_id),
            toc_name=self._text(self.meta.toc_name),
            nav_points=self.toc.render_epub(self._escape_html),
        )

    def render_nav(self, numbered):
        content = self.toc.render(numbered, self._escape_html)

        landmarks = []
        if self.version > EpubVersion.V20:
            for file in self.files:
                if file.reftype is not None and file.title:
                    landmarks.append('<li><a epub:type="{type}" href="{href}">{title}</a></li>'.format(
                        type=encode_attribute(file.reftype.landmark_type),
                        href=encode_attribute(file.file),
                        title=self._text(file.title),
                    ))

        template = self.version >= EpubVersion.V30 and templates.V3_NAV_XHTML or templates.V2_NAV_XHTML
        return templates.render(
            template,
            content=content,
            toc_name=self._text(self.meta.toc_name),
            generator_attr=encode_attribute(self.meta.generator),
            landmarks=landmarks and indent(
                templates.render(templates.LANDMARKS, items=indent('\n'.join(landmarks), 2)),
                2,
            ) or '',
        )
