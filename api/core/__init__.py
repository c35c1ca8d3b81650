"""
Shared, cross-cutting code for the API.

`core/` holds the small building blocks the feature packages lean on
(DB wiring, settings, logging). Comic-specific SQL and business rules live
in `comics/`.
"""
