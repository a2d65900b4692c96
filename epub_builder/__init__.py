from .toc import Toc, TocElement
from .content import EpubContent, ReferenceType
from .epub import EpubBuilder, EpubVersion, PageDirection, Metadata, MetadataOpf
from .zip import Zip, ZipCommand, ZipLibrary, zip_command_or_library
from .cover import CoverOptions, make_cover, make_cover_from_url
from .errors import (
    EpubBuilderException, EpubVersionError, InvalidMetadataError, PageDirectionError, TemplateError, ZipError,
)

__version__ = '0.1.0'
