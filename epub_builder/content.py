import enum
from attrs import define, field

from .toc import TocElement


class ReferenceType(enum.Enum):
    """What role a page plays in the book.

    Used by the guide section of EPUB 2 and by the landmarks of EPUB 3 nav.
    Each value is (guide type, landmark epub:type).

    See http://www.idpf.org/epub/20/spec/OPF_2.0.1_draft.htm#Section2.3
    and https://idpf.github.io/epub-vocabs/structure/
    """
    # This is the cover page, not the cover image
    COVER = ('cover', 'cover')
    TITLE_PAGE = ('title-page', 'titlepage')
    TOC = ('toc', 'toc')
    INDEX = ('index', 'index')
    GLOSSARY = ('glossary', 'glossary')
    ACKNOWLEDGEMENTS = ('acknowledgements', 'acknowledgements')
    BIBLIOGRAPHY = ('bibliography', 'bibliography')
    COLOPHON = ('colophon', 'colophon')
    COPYRIGHT = ('copyright', 'copyright-page')
    DEDICATION = ('dedication', 'dedication')
    EPIGRAPH = ('epigraph', 'epigraph')
    FOREWORD = ('foreword', 'foreword')
    LOI = ('loi', 'loi')
    LOT = ('lot', 'lot')
    NOTES = ('notes', 'endnotes')
    PREFACE = ('preface', 'preface')
    # Where the actual text starts
    TEXT = ('text', 'bodymatter')

    @property
    def guide_type(self):
        return self.value[0]

    @property
    def landmark_type(self):
        return self.value[1]

    @classmethod
    def parse(cls, name):
        """Look up a reference type by name, e.g. "title_page", "title-page" or "TitlePage"."""
        key = name.replace('-', '_').upper()
        if key in cls.__members__:
            return cls[key]
        for reftype in cls:
            if reftype.name.replace('_', '') == key.replace('_', ''):
                return reftype
            if name in reftype.value:
                return reftype
        raise ValueError(f"Unknown reference type: {name}")


def read_content(content):
    """Turn whatever we were given (str, bytes or a binary file object) into bytes."""
    if isinstance(content, str):
        return content.encode('utf-8')
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    if hasattr(content, 'read'):
        data = content.read()
        if isinstance(data, str):
            return data.encode('utf-8')
        return data
    raise TypeError(f"Can't use {type(content).__name__} as file content")


@define
class EpubContent:
    """An XHTML document to add to the book with EpubBuilder.add_content.

    By default it sits at level 1 and has no title, which keeps it out of
    the table of contents:

        content = (
            EpubContent('chapter_1.xhtml', text)
            .title('Chapter 1')
            .child(TocElement('chapter_1.xhtml#1', '1.1'))
        )
    """
    href: str = field()
    content: object = field(repr=False)
    toc: TocElement = field()
    reference_type: ReferenceType = None

    @toc.default
    def _default_toc(self):
        return TocElement(self.href, '')

    def title(self, title):
        self.toc.title = title
        return self

    def raw_title(self, raw_title):
        """Only useful with escape_html disabled. This must contain no HTML
        tags, but should still be escaped (e.g. &lt;) by the caller."""
        self.toc.raw_title = raw_title
        return self

    def level(self, level):
        self.toc.with_level(level)
        return self

    def child(self, element):
        self.toc.child(element)
        return self

    def reftype(self, reference_type):
        """Lists this document in the guide (EPUB 2) and landmarks (EPUB 3)."""
        self.reference_type = reference_type
        return self
