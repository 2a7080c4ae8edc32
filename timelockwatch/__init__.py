# ============================================================================
# timelockwatch/__init__.py
# Package Marker for the Timelock Monitor
# ============================================================================
#
# PURPOSE:
# Reconstructs the lifecycle of governance actions sent through a timelock
# contract by a multisig executor.
#
# LAYOUT:
# - decoder/: nested ABI call decoding (multisig -> timelock -> call data)
# - lifecycle/: governance operation model and queue/cancel/execute correlation
# - net/: ledger history source (Etherscan)
# - reporting/: display helpers (relative time, address names, filters)
# - monitor.py: fetch -> decode -> correlate facade
#
__version__ = "0.1.0"
