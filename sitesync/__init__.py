"""sitesync incremental site publisher.

This package turns a tree of Markdown documents and CSS stylesheets into a static
HTML site and publishes only the files whose content changed to an S3 bucket.

The main entry point is the CLI module, which provides the ``build`` command.

Architecture:
- Transforms (extractors, renderers, html_utils, asset_processors) are pure functions
  or small classes over strings and bytes.
- The object store is reached through the ObjectStore protocol, so a dry-run or null
  store can replace S3 without touching the build logic.
- SiteBuilder in build.py sequences every step and owns all per-run state.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
