import datetime
import io
import uuid
import zipfile
import xml.etree.ElementTree as etree

import pytest

from epub_builder import (
    EpubBuilder,
    EpubContent,
    EpubVersion,
    EpubVersionError,
    InvalidMetadataError,
    MetadataOpf,
    PageDirection,
    PageDirectionError,
    ReferenceType,
    TocElement,
    ZipLibrary,
)

BOOK_UUID = uuid.UUID("a1b2c3d4-0000-4000-8000-000000000001")

chapter = """<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml">
<head><title>{title}</title></head>
<body><h1 id="1">{title}</h1><p>Text</p></body>
</html>
"""


def make_builder(version=EpubVersion.V20):
    builder = EpubBuilder(ZipLibrary())
    builder.epub_version(version)
    builder.metadata("author", "Wikipedia Contributors")
    builder.metadata("title", "Ada Lovelace: first programmer")
    builder.set_uuid(BOOK_UUID)
    builder.set_modified_date(datetime.datetime(2020, 1, 2, 3, 4, 5, tzinfo=datetime.timezone.utc))
    return builder


def add_chapters(builder):
    builder.add_content(
        EpubContent("chapter_1.xhtml", chapter.format(title="First Programmer"))
        .title("First Programmer")
        .reftype(ReferenceType.TEXT)
        .child(TocElement("chapter_1.xhtml#1", "Notes & sketches"))
    )
    builder.add_content(
        EpubContent("chapter_2.xhtml", chapter.format(title="First computer program"))
        .title("First computer program")
    )


def open_epub(data):
    return zipfile.ZipFile(io.BytesIO(data))


def read(epub, name):
    return epub.read(name).decode("utf-8")


def test_generate_layout():
    builder = make_builder()
    add_chapters(builder)
    epub = open_epub(builder.generate())

    names = epub.namelist()
    assert names[0] == "mimetype"
    assert epub.getinfo("mimetype").compress_type == zipfile.ZIP_STORED
    assert epub.read("mimetype") == b"application/epub+zip"
    assert names[1:3] == [
        "META-INF/container.xml",
        "META-INF/com.apple.ibooks.display-options.xml",
    ]
    for name in (
        "OEBPS/chapter_1.xhtml",
        "OEBPS/chapter_2.xhtml",
        "OEBPS/stylesheet.css",
        "OEBPS/content.opf",
        "OEBPS/toc.ncx",
        "OEBPS/nav.xhtml",
    ):
        assert name in names
    assert "OEBPS/toc.xhtml" not in names
    assert epub.read("OEBPS/stylesheet.css") == b""
    assert 'full-path="OEBPS/content.opf"' in read(epub, "META-INF/container.xml")


def test_generated_files_are_well_formed():
    builder = make_builder(EpubVersion.V30)
    builder.add_description("<Quotes> & \"ampersands\"")
    builder.add_content(
        EpubContent("chapter_1.xhtml", chapter.format(title="Q"))
        .title("Q&A <1>")
        .reftype(ReferenceType.TEXT)
    )
    builder.inline_toc()
    epub = open_epub(builder.generate())
    for name in ("META-INF/container.xml", "OEBPS/content.opf", "OEBPS/toc.ncx", "OEBPS/nav.xhtml", "OEBPS/toc.xhtml"):
        etree.fromstring(epub.read(name))


def test_content_opf_v2():
    builder = make_builder()
    builder.add_subject("Biography")
    builder.set_license("CC-BY-SA")
    builder.add_metadata_opf(MetadataOpf("primary-writing-mode", "horizontal-lr"))
    builder.set_publication_date(datetime.datetime(1843, 9, 1))
    add_chapters(builder)
    opf = read(open_epub(builder.generate()), "OEBPS/content.opf")

    assert '<package version="2.0"' in opf
    assert f'<dc:identifier id="epub-id-1">urn:uuid:{BOOK_UUID}</dc:identifier>' in opf
    assert "<dc:title>Ada Lovelace: first programmer</dc:title>" in opf
    assert '<dc:date opf:event="modification">2020-01-02T03:04:05Z</dc:date>' in opf
    assert '<dc:date opf:event="publication">1843-09-01T00:00:00Z</dc:date>' in opf
    assert '<dc:creator opf:role="aut">Wikipedia Contributors</dc:creator>' in opf
    assert "<dc:subject>Biography</dc:subject>" in opf
    assert "<dc:rights>CC-BY-SA</dc:rights>" in opf
    assert '<meta name="primary-writing-mode" content="horizontal-lr"/>' in opf
    assert '<meta name="generator" content="epub-builder"/>' in opf
    assert '<item media-type="application/xhtml+xml" id="id_chapter_1.xhtml" href="chapter_1.xhtml"/>' in opf
    assert '<item media-type="text/css" id="id_stylesheet.css" href="stylesheet.css"/>' in opf
    assert '<itemref idref="id_chapter_1.xhtml"/>' in opf
    assert '<itemref idref="id_chapter_2.xhtml"/>' in opf
    assert '<itemref idref="id_stylesheet.css"/>' not in opf
    assert '<reference type="text" title="First Programmer" href="chapter_1.xhtml"/>' in opf
    assert 'page-progression-direction="ltr"' in opf


def test_content_opf_v3():
    builder = make_builder(EpubVersion.V30)
    builder.epub_direction(PageDirection.RTL)
    builder.add_cover_image("images/cover.png", b"\x89PNG", "image/png")
    add_chapters(builder)
    opf = read(open_epub(builder.generate()), "OEBPS/content.opf")

    assert '<package version="3.0"' in opf
    assert '<meta property="dcterms:modified">2020-01-02T03:04:05Z</meta>' in opf
    assert '<dc:creator id="epub-creator-0">Wikipedia Contributors</dc:creator>' in opf
    assert '<meta refines="#epub-creator-0" property="role" scheme="marc:relators">aut</meta>' in opf
    assert '<item media-type="image/png" properties="cover-image" id="cover-image" href="images/cover.png"/>' in opf
    assert '<meta name="cover" content="cover-image"/>' in opf
    assert 'properties="nav"' in opf
    assert 'page-progression-direction="rtl"' in opf


def test_toc_ncx():
    builder = make_builder()
    add_chapters(builder)
    ncx = read(open_epub(builder.generate()), "OEBPS/toc.ncx")

    assert f'<meta name="dtb:uid" content="urn:uuid:{BOOK_UUID}"/>' in ncx
    assert "<text>Table Of Contents</text>" in ncx
    assert '<navPoint id="navPoint-1" playOrder="1">' in ncx
    assert '<navPoint id="navPoint-2" playOrder="2">' in ncx
    assert '<navPoint id="navPoint-3" playOrder="3">' in ncx
    assert "<text>Notes &amp; sketches</text>" in ncx
    assert '<content src="chapter_1.xhtml#1" />' in ncx


def test_nav_xhtml():
    builder = make_builder(EpubVersion.V30)
    add_chapters(builder)
    nav = read(open_epub(builder.generate()), "OEBPS/nav.xhtml")

    assert '<nav epub:type="toc" id="toc">' in nav
    assert "<ol>" in nav
    assert "<ul>" not in nav
    assert '<a href="chapter_1.xhtml">First Programmer</a>' in nav
    assert '<li><a href="chapter_1.xhtml#1">Notes &amp; sketches</a></li>' in nav
    assert '<nav epub:type="landmarks" id="landmarks" hidden="hidden">' in nav
    assert '<li><a epub:type="bodymatter" href="chapter_1.xhtml">First Programmer</a></li>' in nav


def test_nav_xhtml_v2_has_no_landmarks():
    builder = make_builder()
    add_chapters(builder)
    nav = read(open_epub(builder.generate()), "OEBPS/nav.xhtml")
    assert "landmarks" not in nav
    assert '<div id="toc">' in nav


def test_inline_toc():
    builder = make_builder()
    builder.inline_toc()
    add_chapters(builder)
    epub = open_epub(builder.generate())

    toc = read(epub, "OEBPS/toc.xhtml")
    assert "<ul>" in toc
    assert '<li><a href="toc.xhtml">Table Of Contents</a></li>' in toc

    opf = read(epub, "OEBPS/content.opf")
    assert opf.index('<itemref idref="id_toc.xhtml"/>') < opf.index('<itemref idref="id_chapter_1.xhtml"/>')
    assert '<reference type="toc" title="Table Of Contents" href="toc.xhtml"/>' in opf


def test_untitled_content_stays_out_of_toc():
    builder = make_builder()
    builder.add_content(EpubContent("cover.xhtml", "<html/>"))
    add_chapters(builder)
    epub = open_epub(builder.generate())

    assert "cover.xhtml" not in read(epub, "OEBPS/toc.ncx")
    assert '<itemref idref="id_cover.xhtml"/>' in read(epub, "OEBPS/content.opf")
    assert len(builder.toc) == 2


def test_content_levels_build_the_toc():
    builder = make_builder()
    builder.add_content(EpubContent("part.xhtml", "").title("Part").level(0))
    builder.add_content(EpubContent("ch1.xhtml", "").title("One"))
    builder.add_content(EpubContent("ch2.xhtml", "").title("Two"))
    assert [e.url for e in builder.toc] == ["part.xhtml"]
    assert [c.url for c in builder.toc.elements[0].children] == ["ch1.xhtml", "ch2.xhtml"]


def test_escape_html_disabled():
    builder = make_builder()
    builder.escape_html(False)
    builder.set_title("<i>Italic</i> title")
    builder.add_content(
        EpubContent("chapter_1.xhtml", "")
        .title("<b>Bold</b>")
        .raw_title("Bold")
    )
    epub = open_epub(builder.generate())

    assert "<dc:title><i>Italic</i> title</dc:title>" in read(epub, "OEBPS/content.opf")
    assert "<text>Bold</text>" in read(epub, "OEBPS/toc.ncx")
    assert '<a href="chapter_1.xhtml"><b>Bold</b></a>' in read(epub, "OEBPS/nav.xhtml")


def test_escape_html_enabled():
    builder = make_builder()
    builder.set_title("<i>Italic</i> title")
    builder.add_description("Fish & chips")
    opf = read(open_epub(builder.generate()), "OEBPS/content.opf")
    assert "<dc:title>&lt;i&gt;Italic&lt;/i&gt; title</dc:title>" in opf
    assert "<dc:description>Fish &amp; chips</dc:description>" in opf


def test_stylesheet():
    builder = make_builder()
    builder.stylesheet(io.BytesIO(b"body { margin: 0; }"))
    epub = open_epub(builder.generate())
    assert epub.read("OEBPS/stylesheet.css") == b"body { margin: 0; }"
    assert epub.namelist().count("OEBPS/stylesheet.css") == 1


def test_add_resource():
    builder = make_builder()
    builder.add_resource("data/image_0.png", b"\x89PNG", "image/png")
    epub = open_epub(builder.generate())
    assert epub.read("OEBPS/data/image_0.png") == b"\x89PNG"
    assert '<item media-type="image/png" id="id_data_image_0.png" href="data/image_0.png"/>' in read(epub, "OEBPS/content.opf")


def test_generate_to_file(tmp_path):
    builder = make_builder()
    add_chapters(builder)
    target = tmp_path / "book.epub"
    data = builder.generate(str(target))
    assert target.read_bytes() == data
    assert zipfile.is_zipfile(target)


def test_metadata_keys():
    builder = EpubBuilder(ZipLibrary())
    builder.metadata("author", "A").metadata("author", "B")
    builder.metadata("subject", "S")
    builder.metadata("description", "D")
    builder.metadata("lang", "fr").metadata("toc_name", "Sommaire")
    builder.metadata("direction", "RTL")
    builder.metadata("generator", "tests").metadata("license", "Public domain")
    assert builder.meta.author == ["A", "B"]
    assert builder.meta.subject == ["S"]
    assert builder.meta.description == ["D"]
    assert builder.meta.lang == "fr"
    assert builder.meta.toc_name == "Sommaire"
    assert builder.meta.direction is PageDirection.RTL
    assert builder.meta.generator == "tests"
    assert builder.meta.license == "Public domain"

    builder.metadata("author", "")
    assert builder.meta.author == []


def test_metadata_setters():
    builder = EpubBuilder(ZipLibrary())
    builder.set_authors(["A", "B"])
    builder.add_author("C")
    assert builder.meta.author == ["A", "B", "C"]
    builder.clear_authors()
    assert builder.meta.author == []

    builder.set_subjects(["x"])
    builder.add_subject("y")
    assert builder.meta.subject == ["x", "y"]
    builder.clear_subjects()
    assert builder.meta.subject == []

    builder.set_description(["one"])
    builder.add_description("two")
    assert builder.meta.description == ["one", "two"]
    builder.clear_description()
    assert builder.meta.description == []

    builder.set_lang("de")
    builder.set_generator("gen")
    builder.set_toc_name("Inhalt")
    assert (builder.meta.lang, builder.meta.generator, builder.meta.toc_name) == ("de", "gen", "Inhalt")


def test_invalid_metadata():
    builder = EpubBuilder(ZipLibrary())
    with pytest.raises(InvalidMetadataError):
        builder.metadata("publisher", "Nobody")
    with pytest.raises(PageDirectionError):
        builder.metadata("direction", "sideways")


def test_page_direction_parse():
    assert PageDirection.parse("ltr") is PageDirection.LTR
    assert PageDirection.parse("Rtl") is PageDirection.RTL
    assert str(PageDirection.RTL) == "rtl"
    with pytest.raises(PageDirectionError):
        PageDirection.parse("ttb")


def test_random_uuid_when_unset():
    builder = EpubBuilder(ZipLibrary())
    opf = read(open_epub(builder.generate()), "OEBPS/content.opf")
    assert '<dc:identifier id="epub-id-1">urn:uuid:' in opf


@pytest.mark.parametrize("version, expected", [
    (EpubVersion.V30, EpubVersion.V30),
    (2, EpubVersion.V20),
    (3, EpubVersion.V30),
    (20, EpubVersion.V20),
    ("3", EpubVersion.V30),
    ("2.0.1", EpubVersion.V20),
    ("3.0", EpubVersion.V30),
])
def test_epub_version(version, expected):
    builder = EpubBuilder(ZipLibrary())
    assert builder.epub_version(version) is builder
    assert builder.version is expected


@pytest.mark.parametrize("version", [4, "epub3", None, 25])
def test_epub_version_invalid(version):
    builder = EpubBuilder(ZipLibrary())
    with pytest.raises(EpubVersionError):
        builder.epub_version(version)
