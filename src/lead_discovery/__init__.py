"""Lead Discovery Engine.

This package turns a free-text business search into a ranked set of sales
leads, either through a deterministic multi-strategy search fan-out or
through an agent loop in which a reasoning model chooses search, enrichment
and scoring tools on its own.
"""

__version__ = "0.1.0"
