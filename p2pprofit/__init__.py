"""P2P Profit - realized profit accounting for peer-to-peer asset trades."""

__version__ = "0.1.0"
