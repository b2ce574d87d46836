"""Concrete adapters for the interfaces in :mod:`contentdesk.interfaces`."""
