"""
Core modules for Chat Ledger.

This package contains cost calculation, command parsing and the
conversation orchestration logic.
"""
