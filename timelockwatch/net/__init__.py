#
# PURPOSE:
# Outbound network access. Only the ledger history source lives here.
#
