class EpubBuilderException(Exception):
    pass


class InvalidMetadataError(EpubBuilderException):
    pass


class PageDirectionError(EpubBuilderException):
    pass


class TemplateError(EpubBuilderException):
    pass


class ZipError(EpubBuilderException):
    pass


class EpubVersionError(EpubBuilderException):
    pass
