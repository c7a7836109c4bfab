"""Domain layer: enums, errors, paths, rules, compiler, and validator.

This layer depends only on stdlib.
It must never import from services, commands, output, or config.
"""
