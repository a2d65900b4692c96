import html
import re
import string

_quote_re = re.compile(r'"')

# NCName characters, slightly more permissive than the W3C rules since some
# of these aren't valid as a first character. to_id() prefixes anyway.
_id_ranges = (
    ('\u00C0', '\u00D6'),
    ('\u00D8', '\u00F6'),
    ('\u00F8', '\u02FF'),
    ('\u0370', '\u037D'),
    ('\u037F', '\u1FFF'),
    ('\u200C', '\u200D'),
    ('\u2070', '\u218F'),
    ('\u2C00', '\u2FEF'),
    ('\u3001', '\uD7FF'),
    ('\uF900', '\uFDCF'),
    ('\uFDF0', '\uFFFD'),
    ('\U00010000', '\U000EFFFF'),
    ('\u0300', '\u036F'),
    ('\u203F', '\u2040'),
)
_id_chars = frozenset(string.ascii_letters + string.digits + '_-.\u00B7')


def encode_html(text, enabled=True):
    """Escape human-readable text, unless the caller has opted to do it themselves."""
    if enabled:
        return html.escape(text)
    return text


def encode_attribute(text):
    """Escape a value for use inside a double-quoted XML attribute.

    This doesn't care about the escape_html setting: structural values like
    hrefs, ids and mime types are always escaped.
    """
    return html.escape(str(text), quote=True)


def escape_quote(text):
    return _quote_re.sub('&quot;', text)


def indent(text, level):
    """Indent every non-empty line of text by `level` units of two spaces.

    Lines are only split on '\\n' (and a trailing '\\r' dropped), so other
    unicode line breaks inside titles are left alone.
    """
    prefix = '  ' * level
    lines = [line[:-1] if line.endswith('\r') else line for line in text.split('\n')]
    if lines[-1] == '':
        lines.pop()
    return '\n'.join(prefix + line if line else line for line in lines)


def is_id_char(c):
    if c in _id_chars:
        return True
    return any(low <= c <= high for low, high in _id_ranges)


def to_id(s):
    """Make an XML id out of a path, replacing anything an id can't contain by underscores."""
    return 'id_' + ''.join(c if is_id_char(c) else '_' for c in s)


def sanitize_filename(s):
    """Take a string and return a valid filename constructed from the string.
    Uses a whitelist approach: any characters not present in valid_chars are
    removed. Also spaces are replaced with underscores.

    Note: this method may produce invalid filenames such as ``, `.` or `..`
    so callers should append an extension like '.epub'.
    """
    valid_chars = "-_.() %s%s" % (string.ascii_letters, string.digits)
    filename = ''.join(c for c in s if c in valid_chars)
    filename = filename.replace(' ', '_')  # I don't like spaces in filenames.
    return filename
