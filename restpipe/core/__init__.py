"""
Shared, cross-cutting code for restpipe.

`core/` should contain small building blocks that multiple features use
(settings, logging, DB wiring, naming). Keep stage logic in `pipeline/` and
token handling in `auth/`.
"""
