#
# PURPOSE:
# Foundational pieces every other package depends on.
#
# WHAT'S IN THIS MODULE:
# - config.py: monitored deployment, ledger source and logging settings
#
