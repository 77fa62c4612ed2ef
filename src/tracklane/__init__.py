"""Tracklane - workflow transitions and board coordination for an issue tracker."""

__version__ = "0.1.0"
