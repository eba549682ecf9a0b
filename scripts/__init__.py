"""Command line helpers for the dosing engine."""
