"""Folio static site manager.

Folio keeps a registry of independent website projects. Each project is a
directory of markdown content and a theme; a build renders every markdown
document through the theme's page template into a static ``public/`` tree.

The main entry point is the CLI module. Programmatic callers use
``folio.engine.Engine``, which resolves project names and runs builds and
article operations under a per-project lock.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
