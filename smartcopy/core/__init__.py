"""
Core of Smart Copy: extraction, chunking, translation, transport and the
surface session.

Submodules are imported directly (e.g. `smartcopy.core.extraction`).
"""
