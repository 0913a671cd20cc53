"""Shared helpers: exceptions, logging, datetime and validation."""
