"""The fixed parts of the generated files. Fill them with render()."""
from .errors import TemplateError

CONTAINER = '''<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
'''

IBOOKS = '''<?xml version="1.0" encoding="UTF-8"?>
<display_options>
  <platform name="*">
    <option name="specified-fonts">true</option>
  </platform>
</display_options>
'''

TOC_NCX = '''<?xml version="1.0" encoding="UTF-8"?>
<ncx version="2005-1" xmlns="http://www.daisy.org/z3986/2005/ncx/">
  <head>
    <meta name="dtb:uid" content="{uuid}"/>
  </head>
  <docTitle>
    <text>{toc_name}</text>
  </docTitle>
  <navMap>
{nav_points}
  </navMap>
</ncx>
'''

V2_CONTENT_OPF = '''<?xml version="1.0" encoding="UTF-8"?>
<package version="2.0" xmlns="http://www.idpf.org/2007/opf" unique-identifier="epub-id-1">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">
    <dc:identifier id="epub-id-1">{uuid}</dc:identifier>
    <dc:title>{title}</dc:title>
    <dc:date opf:event="modification">{date_modified}</dc:date>
    <dc:language>{lang}</dc:language>
{authors}
{optional}
    <meta name="generator" content="{generator_attr}"/>
  </metadata>
  <manifest>
    <item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>
    <item id="nav" href="nav.xhtml" media-type="application/xhtml+xml"/>
{items}
  </manifest>
  <spine toc="ncx" page-progression-direction="{direction}">
{itemrefs}
  </spine>
  <guide>
    <reference type="toc" title="{toc_name_attr}" href="nav.xhtml"/>
{guide}
  </guide>
</package>
'''

V3_CONTENT_OPF = '''<?xml version="1.0" encoding="UTF-8"?>
<package version="3.0" xmlns="http://www.idpf.org/2007/opf" unique-identifier="epub-id-1" xml:lang="{lang}">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">
    <dc:identifier id="epub-id-1">{uuid}</dc:identifier>
    <dc:title>{title}</dc:title>
    <meta property="dcterms:modified">{date_modified}</meta>
    <dc:language>{lang}</dc:language>
{authors}
{optional}
    <meta name="generator" content="{generator_attr}"/>
  </metadata>
  <manifest>
    <item id="ncx" href="toc.ncx" media-type="application/x-dtbncx+xml"/>
    <item id="nav" href="nav.xhtml" media-type="application/xhtml+xml" properties="nav"/>
{items}
  </manifest>
  <spine toc="ncx" page-progression-direction="{direction}">
{itemrefs}
  </spine>
  <guide>
    <reference type="toc" title="{toc_name_attr}" href="nav.xhtml"/>
{guide}
  </guide>
</package>
'''

V2_NAV_XHTML = '''<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" "http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">
<html xmlns="http://www.w3.org/1999/xhtml">
  <head>
    <meta http-equiv="Content-Type" content="application/xhtml+xml; charset=utf-8"/>
    <meta name="generator" content="{generator_attr}"/>
    <title>{toc_name}</title>
    <link rel="stylesheet" type="text/css" href="stylesheet.css"/>
  </head>
  <body>
    <div id="toc">
      <h1>{toc_name}</h1>
{content}
    </div>
  </body>
</html>
'''

V3_NAV_XHTML = '''<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:epub="http://www.idpf.org/2007/ops">
  <head>
    <meta charset="UTF-8"/>
    <meta name="generator" content="{generator_attr}"/>
    <title>{toc_name}</title>
    <link rel="stylesheet" type="text/css" href="stylesheet.css"/>
  </head>
  <body>
    <nav epub:type="toc" id="toc">
      <h1 id="toc-title">{toc_name}</h1>
{content}
    </nav>
{landmarks}
  </body>
</html>
'''

LANDMARKS = '''<nav epub:type="landmarks" id="landmarks" hidden="hidden">
  <ol>
{items}
  </ol>
</nav>'''


def render(template, **data):
    try:
        return template.format(**data)
    except (KeyError, IndexError) as e:
        raise TemplateError(f"missing value for template placeholder {e}") from e
