"""mp3-combiner: merge audio tracks into one file, or batch-convert them."""

__version__ = "0.1.0"
