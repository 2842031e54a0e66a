"""
pygame presentation layer. Reads snapshots, forwards input; no game rules.
"""
