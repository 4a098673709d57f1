"""Decoders for Subaru, Suzuki and VW key fob pulse trains, with a capture history and key documents."""

__version__ = "0.1.0"