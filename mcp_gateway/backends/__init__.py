"""Backends — in-process service implementations behind the ServiceHandle protocol."""
