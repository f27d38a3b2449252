"""
Configuration loading and validation for runtime settings and seed data.

Provides strongly typed settings objects read from environment variables and
immutable venue/route seed records validated at construction time.
"""
