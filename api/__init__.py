"""Routekit HTTP API."""
