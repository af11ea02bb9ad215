"""univsrg — universal vertical-scrolling rhythm game chart converter.

WHY: Lane-based rhythm games each ship charts in their own bundle
format. This package decodes bundles into a game-agnostic Package and
compiles a Package back into a bundle, merging charts and media from
several inputs without duplicating identical files.

HOW: Three layers — the core model and resource pool, per-game codecs
under formats/, and a CLI that chains parsers into one compiler.

RULES:
- Every format decodes into and encodes from the same core model
- Adding a game = one new package under formats/, no core changes
- Media is content-addressed: identical bytes are stored once
"""

__version__ = "0.1.0"
