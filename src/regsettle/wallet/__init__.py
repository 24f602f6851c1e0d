"""
Address derivation, transaction decoding and ownership lookups.
"""
