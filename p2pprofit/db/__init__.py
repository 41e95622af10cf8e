"""Persistence for P2P Profit."""
