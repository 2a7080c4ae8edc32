#
# PURPOSE:
# Presentation helpers for monitor results (labels, names, filters).
#
