"""Fatal error types and their process exit codes."""

from __future__ import annotations

EXIT_OK = 0
EXIT_HELP = 2
EXIT_USAGE = 3
EXIT_RUNTIME = 4
EXIT_ROOT = 6
EXIT_MTIME = 7


class SitemapError(Exception):
    """Base class for every fatal condition; ``exit_code`` is distinct per failure site."""

    exit_code = 10


class RuntimeVersionError(SitemapError):
    exit_code = EXIT_RUNTIME


class RootDirectoryError(SitemapError):
    exit_code = EXIT_ROOT


class MtimeMethodError(SitemapError):
    exit_code = EXIT_MTIME


class EmptyManifestError(SitemapError):
    exit_code = 10


class TraversalError(SitemapError):
    exit_code = 11


class ScratchFileError(SitemapError):
    exit_code = 12


class EmptyRenderError(SitemapError):
    exit_code = 13


class ReplaceError(SitemapError):
    exit_code = 14


class CompressionError(SitemapError):
    exit_code = 15


class EmptyPublishedError(SitemapError):
    exit_code = 16


class PruneError(SitemapError):
    exit_code = 17


class MtimeReadError(SitemapError):
    exit_code = 18
