"""POS adapters - Clover REST client."""

from apps.web.pos.adapters.clover import CloverAdapter

__all__ = ["CloverAdapter"]
