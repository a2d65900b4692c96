"""Ways of turning a bunch of files into the actual EPUB zip archive.

Both implementations add the `mimetype` file themselves, since it has to be
the first entry and mustn't be compressed. Don't add it manually.
"""
import io
import logging
import os
import os.path
import posixpath
import subprocess
import tempfile
import zipfile

from .content import read_content
from .errors import ZipError

logger = logging.getLogger(__name__)

MIMETYPE = b"application/epub+zip"


def _archive_path(path):
    # Paths inside a zip always use forward slashes
    return str(path).replace('\\', '/')


def _write_output(data, to):
    if to is None:
        return
    if hasattr(to, 'write'):
        to.write(data)
        return
    try:
        with open(to, 'wb') as f:
            f.write(data)
    except OSError as e:
        raise ZipError(f"error writing to file {to}") from e


class Zip:
    """The interface EpubBuilder uses to package files."""

    def write_file(self, path, content):
        """Write content (str, bytes or a binary file object) to path in the archive."""
        raise NotImplementedError()

    def generate(self, to=None):
        """Finish the archive and return its bytes, also writing them to `to`
        (a filename or a binary file object) if it's given."""
        raise NotImplementedError()


class ZipLibrary(Zip):
    """Builds the archive in memory, with the zipfile module."""

    def __init__(self, compress=True):
        self.buffer = io.BytesIO()
        self.zipfile = zipfile.ZipFile(
            self.buffer,
            'w',
            compression=compress and zipfile.ZIP_DEFLATED or zipfile.ZIP_STORED
        )
        # Some readers choke on a missing comment
        self.zipfile.comment = b""
        # The first file must be named "mimetype", and shouldn't be compressed
        self.zipfile.writestr("mimetype", MIMETYPE, compress_type=zipfile.ZIP_STORED)

    def __repr__(self):
        return 'ZipLibrary()'

    def write_file(self, path, content):
        path = _archive_path(path)
        try:
            self.zipfile.writestr(path, read_content(content))
        except (OSError, ValueError) as e:
            raise ZipError(f"could not write file '{path}' in epub") from e

    def generate(self, to=None):
        try:
            self.zipfile.close()
        except (OSError, ValueError) as e:
            raise ZipError("error writing zip file") from e
        data = self.buffer.getvalue()
        _write_output(data, to)
        return data


class ZipCommand(Zip):
    """Builds the archive by calling an external zip program.

    Files are written to a temporary directory, which is then zipped. This
    fails if `zip` (or whichever command is set) isn't installed.
    """

    def __init__(self, command='zip', temp_dir=None):
        self.command = command
        try:
            self.temp_dir = tempfile.TemporaryDirectory(dir=temp_dir)
        except OSError as e:
            raise ZipError("could not create temporary directory") from e
        self.files = []

    def __repr__(self):
        return f'ZipCommand({self.command!r})'

    @property
    def path(self):
        return self.temp_dir.name

    def _run(self, *args):
        try:
            output = subprocess.run(
                [self.command, *args],
                cwd=self.path,
                capture_output=True,
            )
        except OSError as e:
            raise ZipError(f"failed to run command {self.command}") from e
        if output.returncode != 0:
            raise ZipError(
                f"command {self.command} didn't return successfully: "
                + output.stderr.decode('utf-8', errors='replace')
            )
        return output

    def test(self):
        """Check that the zip command works (i.e. is installed)."""
        self._run('-v')

    def _add_to_tmp_dir(self, path, content):
        dest = os.path.join(self.path, path)
        try:
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            with open(dest, 'wb') as f:
                f.write(read_content(content))
        except OSError as e:
            raise ZipError(f"could not write to temporary file {path}") from e

    def write_file(self, path, content):
        path = posixpath.normpath(_archive_path(path))
        if path.split('/')[0] == '..' or posixpath.isabs(path) or os.path.isabs(path):
            raise ZipError(f"file {path} refers to a path outside the temporary directory")
        self._add_to_tmp_dir(path, content)
        self.files.append(path)

    def generate(self, to=None):
        """Zip up the staged files. The temporary directory is gone afterwards."""
        try:
            self._add_to_tmp_dir('mimetype', MIMETYPE)
            self._run('-X0', 'output.epub', 'mimetype')
            self._run('-9', 'output.epub', *self.files)
            with open(os.path.join(self.path, 'output.epub'), 'rb') as f:
                data = f.read()
        except OSError as e:
            raise ZipError("error reading temporary epub file") from e
        finally:
            self.cleanup()
        _write_output(data, to)
        return data

    def cleanup(self):
        self.temp_dir.cleanup()


def zip_command_or_library(command='zip'):
    """A ZipCommand using `command` if it works on this system, otherwise a ZipLibrary."""
    zip_command = None
    try:
        zip_command = ZipCommand(command)
        zip_command.test()
        return zip_command
    except ZipError as e:
        logger.info("Couldn't use %s, falling back to zipfile: %s", command, e)
        if zip_command is not None:
            zip_command.cleanup()
        return ZipLibrary()
