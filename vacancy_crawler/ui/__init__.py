"""Terminal presentation helpers."""

from .status_board import FleetStatusBoard

__all__ = ["FleetStatusBoard"]
