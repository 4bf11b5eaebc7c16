"""Data models and utility functions.

This package contains:
- accessory: Gateway accessories, light state and light operations
- types: Identity and snapshot types shared across the application
- utils: Utility functions (light formatting, fuzzy lookup, value validation)
"""
