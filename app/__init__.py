"""Snipbook backend application."""
