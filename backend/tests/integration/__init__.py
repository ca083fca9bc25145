"""
Integration tests package.

Registry and ledger against SQLite, the HTTP API through the Flask test
client, and the management CLI.
"""
