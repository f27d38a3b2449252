"""
Seed data I/O, schema enforcement, and CSV contract management.

Handles loading venue/route seed tables and writing run outputs with strict
schema validation.
"""
