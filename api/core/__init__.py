"""
Shared, cross-cutting code for the wiki service.

`core/` should contain small building blocks that multiple features use
(DB wiring, settings, errors). Keep feature-specific SQL and file handling
in the corresponding feature package (e.g. `pages/`, `persons/`).
"""
