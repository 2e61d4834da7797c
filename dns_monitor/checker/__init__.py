"""
Checker package for DNS Monitor.

Provides the dnspython resolver adapter, the check evaluator, and the
scheduler that runs every configured check on its own interval.
"""
