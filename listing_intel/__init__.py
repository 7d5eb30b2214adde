"""Structured extraction and scoring for marketplace listing pages."""
