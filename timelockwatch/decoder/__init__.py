#
# PURPOSE:
# Nested call decoding: multisig payload -> timelock call -> call data.
#
# WHAT'S IN THIS MODULE:
# - registry.py: dialects (selector -> function entry) and the built-in ones
# - values.py: closed set of decoded value types and DecodedCall
# - abi.py: decode()/decode_arguments() over raw byte spans
# - pipeline.py: RecordDecoder, turning RawRecords into GovernanceOperations
#
