"""
Admin backend for the postdesk content site.

The package exposes a FastAPI application that authenticates a single
administrator with a signed session cookie and manages posts whose metadata
lives in a spreadsheet-backed record store and whose media lives in a
Git-backed asset store.
"""
