"""
Store access layer: row reads, conditional writes and bulk updates over an
injected AsyncSession. Callers own the transaction.
"""
