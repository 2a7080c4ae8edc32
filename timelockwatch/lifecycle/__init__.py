#
# PURPOSE:
# Governance operation model and the queue/cancel/execute correlator.
#
# WHAT'S IN THIS MODULE:
# - models.py: RawRecord, GovernanceOperation, OperationStatus, fingerprints
# - correlator.py: LifecycleCorrelator (newest-first terminator index)
#
