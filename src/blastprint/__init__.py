"""
blastprint - print layout and WYSIWYG export for blast-design drawings.
"""

__version__ = "0.1.0"
