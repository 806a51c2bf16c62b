"""Presentation package: view models for the single-page client."""
