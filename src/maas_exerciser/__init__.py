"""
maas_exerciser

This package is a command line exerciser for a MAAS style bare metal
resource manager. One invocation runs one action and exits.

We keep modules small and well separated:
core contains shared data structures, errors and serialization
client contains the remote resource client contract and its implementations
workflow contains the dispatcher, resolver, workflows and diagnostic reporter
config and cli wire everything together for a single process run
"""
