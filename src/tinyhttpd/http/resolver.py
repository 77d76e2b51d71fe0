"""
=============================================================================
RESOURCE RESOLVER
=============================================================================

Turns a raw request target into a filesystem path and decides whether the
target is a file to send (static) or a program to run (dynamic).

=============================================================================
CLASSIFICATION
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       TARGET → RESOURCE                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Target                      Kind      Path               Args     │
    │   ──────                      ────      ────               ────     │
    │   /                           STATIC    ./home.html        ""       │
    │   /godzilla.gif               STATIC    ./godzilla.gif     ""       │
    │   /docs/                      STATIC    ./docs/home.html   ""       │
    │   /cgi-bin/adder?15&20        DYNAMIC   ./cgi-bin/adder    "15&20"  │
    │   /cgi-bin/adder              DYNAMIC   ./cgi-bin/adder    ""       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A target is dynamic if the CGI marker ("cgi-bin") appears ANYWHERE in it.
Static targets keep their query string as part of the path, so
"/home.html?x=1" looks for a file literally named "home.html?x=1".

=============================================================================
NO NORMALIZATION
=============================================================================

The path is the root prefix glued onto the target, nothing more:
no percent-decoding, no collapsing of "..". A target such as
"/../secret" therefore resolves to "./../secret". Whether that is allowed
is not the resolver's call; it reports `within_root` and the server
decides (see ServerConfig.confine_to_root).

=============================================================================
"""

import os
from dataclasses import dataclass
from enum import Enum


class ContentKind(Enum):
    """How a resolved resource is served."""
    STATIC = "static"    # Read the file, send its bytes
    DYNAMIC = "dynamic"  # Execute the file, its stdout is the response


@dataclass(frozen=True)
class ResolvedResource:
    """
    Result of resolving a request target.

    Attributes:
        path: Filesystem path, always root + (part of) the target.
        kind: STATIC or DYNAMIC.
        cgi_args: Text after the first "?" for dynamic targets, else "".
        root: The serving root the path was built from.
    """

    path: str
    kind: ContentKind
    cgi_args: str = ""
    root: str = "."

    @property
    def is_static(self) -> bool:
        return self.kind is ContentKind.STATIC

    @property
    def within_root(self) -> bool:
        """
        True if the normalized path stays inside the serving root.

        Symlinks are not followed; this only catches "..", absolute
        components and targets that do not start with "/".
        """
        root = os.path.abspath(self.root)
        path = os.path.abspath(self.path)
        try:
            return os.path.commonpath([root, path]) == root
        except ValueError:
            # Different drives on Windows
            return False


class Resolver:
    """
    Maps request targets to ResolvedResource values.

    Holds configuration only, so one instance serves every transaction.

    Usage:
        resolver = Resolver(root=".", default_document="home.html")
        resource = resolver.resolve("/cgi-bin/adder?15&20")
        resource.path      # './cgi-bin/adder'
        resource.cgi_args  # '15&20'
    """

    def __init__(
        self,
        root: str = ".",
        default_document: str = "home.html",
        cgi_marker: str = "cgi-bin",
    ):
        self.root = root
        self.default_document = default_document
        self.cgi_marker = cgi_marker

    def resolve(self, target: str) -> ResolvedResource:
        """
        Resolve a raw request target. Never raises; a path that does not
        exist is discovered later by stat().
        """
        if self.cgi_marker not in target:
            return self._resolve_static(target)
        return self._resolve_dynamic(target)

    def _resolve_static(self, target: str) -> ResolvedResource:
        path = self.root + target
        if target.endswith("/"):
            path += self.default_document
        return ResolvedResource(path=path, kind=ContentKind.STATIC, root=self.root)

    def _resolve_dynamic(self, target: str) -> ResolvedResource:
        # partition() splits at the FIRST "?"; later ones stay in the args
        script, _, cgi_args = target.partition("?")
        return ResolvedResource(
            path=self.root + script,
            kind=ContentKind.DYNAMIC,
            cgi_args=cgi_args,
            root=self.root,
        )
