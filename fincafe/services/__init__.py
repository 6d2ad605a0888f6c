"""
HTTP services built on the FinCafe backend packages.
"""
