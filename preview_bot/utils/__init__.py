"""Shared helpers for the preview bot."""
