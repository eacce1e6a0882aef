"""nsaide: forum-enhancement module bootstrap with a bounded shared cache."""

__version__ = "0.1.1"
