"""Gauge voting controller: vote-escrowed voting power turned into pool allocation points."""

__version__ = "1.0.0"
__all__ = ["bps", "controller", "errors", "pools", "state"]