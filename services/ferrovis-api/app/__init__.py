"""Ferrovis API service."""
