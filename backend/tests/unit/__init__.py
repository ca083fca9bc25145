"""
Unit tests package.

Validators, DTOs, the booking ledger with mocked repositories, the
notification dispatcher and the security helpers. Nothing here needs a
running server.
"""
