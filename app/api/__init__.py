"""API module for the application."""
