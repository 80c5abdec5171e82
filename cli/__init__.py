"""Command-line interface for tillrules.

Usage:
    tillrules quote <campaign.toml> <cart.toml> [--json]
    tillrules check <campaign.toml>
    tillrules serve [--campaigns-dir DIR] [--host HOST] [--port PORT]
"""
