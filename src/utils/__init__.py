"""Utilities package for the Dashboard Tabs application."""
