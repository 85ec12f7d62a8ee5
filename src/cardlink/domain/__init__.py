"""Domain rules for CardLink.

Slug allocation and link validation. This layer has no dependencies on
infrastructure concerns.
"""
