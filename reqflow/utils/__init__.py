"""Shared utility helpers used across models and services."""
