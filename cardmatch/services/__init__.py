"""
CardMatch services.

Collaborator adapters (catalog, vision), the search cascade, the result
cache and the query lifecycle controller.
"""
