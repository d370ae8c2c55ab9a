"""Animated Mermaid diagram export: SVG scene in, lossless APNG out."""

__version__ = "0.1.0"
