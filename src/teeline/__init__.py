"""teeline: copy one input to standard output and any number of files, concurrently."""

__version__ = "0.1.0"
