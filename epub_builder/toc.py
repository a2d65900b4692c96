import logging
from attrs import define, Factory

from .common import encode_attribute, encode_html, indent

logger = logging.getLogger(__name__)

navpoint_template = '''<navPoint id="navPoint-{id}" playOrder="{id}">
  <navLabel>
   <text>{title}</text>
  </navLabel>
  <content src="{url}" />{children}
</navPoint>'''

list_item_template = '''<li>
  {link}
{children}
</li>'''


def _list_tag(numbered):
    return numbered and 'ol' or 'ul'


def _insert(siblings, element):
    """Place element according to its level.

    Walks down the rightmost spine as long as the element's level is deeper
    than the last sibling's, then appends it there. Levels are never checked:
    an element with nothing shallower before it just becomes a sibling.
    """
    while siblings and element.level > siblings[-1].level:
        siblings = siblings[-1].children
    siblings.append(element)


@define
class TocElement:
    """An entry of the table of contents.

    level: 0 for a part, 1 for a chapter, 2 for a section, and so on.
    """
    url: str
    title: str
    level: int = 1
    raw_title: str = None
    children: list = Factory(list)

    def with_level(self, level):
        self.level = level
        return self

    def with_raw_title(self, raw_title):
        """Title used as-is in toc.ncx, for callers doing their own escaping."""
        self.raw_title = raw_title
        return self

    def level_up(self, level):
        """Move this element to `level`, taking its children along so relative depths are kept."""
        delta = level - self.level
        self._shift(delta)

    def _shift(self, delta):
        self.level += delta
        for child in self.children:
            child._shift(delta)

    def child(self, element):
        """Attach element directly under this one, pushing it (and its own
        children) deeper if its level wouldn't make sense there."""
        if element.level <= self.level:
            element.level_up(self.level + 1)
        self.children.append(element)
        return self

    def add(self, element):
        _insert(self.children, element)

    def render(self, numbered, escape_html=True):
        """Render as an HTML list item. Untitled elements render as nothing."""
        if not self.title:
            return ''
        link = '<a href="{url}">{title}</a>'.format(
            url=encode_attribute(self.url),
            title=encode_html(self.title, escape_html),
        )
        if not self.children:
            return f'<li>{link}</li>'

        oul = _list_tag(numbered)
        children = '\n'.join(child.render(numbered, escape_html) for child in self.children)
        children = f'<{oul}>\n{indent(children, 1)}\n</{oul}>'
        return list_item_template.format(link=link, children=indent(children, 1))

    def render_epub(self, offset, escape_html=True):
        """Render as a toc.ncx navPoint.

        offset is the number given to the previous navPoint; the returned one
        is the last number used in this subtree, so that numbering carries on
        over siblings.
        """
        offset += 1
        navpoint_id = offset

        children = []
        for child in self.children:
            offset, rendered = child.render_epub(offset, escape_html)
            children.append(rendered)

        if self.raw_title is not None:
            title = self.raw_title
        else:
            title = encode_html(self.title, escape_html)

        return offset, navpoint_template.format(
            id=navpoint_id,
            title=title,
            url=encode_attribute(self.url),
            children=children and '\n' + indent('\n'.join(children), 1) or '',
        )


@define
class Toc:
    elements: list = Factory(list)

    def __iter__(self):
        return self.elements.__iter__()

    def __len__(self):
        return len(self.elements)

    def is_empty(self):
        # A single entry isn't much of a table of contents
        return len(self.elements) <= 1

    def add(self, element):
        _insert(self.elements, element)

    def render(self, numbered, escape_html=True):
        """Render as an <ol> (numbered) or <ul> list, to embed in nav.xhtml."""
        output = []
        for element in self.elements:
            rendered = element.render(numbered, escape_html)
            logger.debug("Rendered toc element: %r", rendered)
            output.append(rendered)
        oul = _list_tag(numbered)
        items = indent('\n'.join(output), 1)
        return indent(f'<{oul}>\n{items}\n</{oul}>', 2)

    def render_epub(self, escape_html=True):
        """Render all navPoints, to embed in toc.ncx's navMap."""
        output = []
        offset = 0
        for element in self.elements:
            offset, rendered = element.render_epub(offset, escape_html)
            output.append(rendered)
        return indent('\n'.join(output), 2)
