"""Polymer-X: committee decision engine for plastic bioremediation designs."""

__version__ = "0.3.0"
