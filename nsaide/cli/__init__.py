# =============================================================================
# nsaide/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Operator commands for the nsaide cache and module system, run via
# `python -m nsaide.cli <command>`:
#
#   bootstrap          fetch the manifest, load and initialise modules
#   user <id>          look up one forum user through the shared cache
#   stats              sizes of the memory tier, persistent index, pending map
#   reconcile          sweep expired entries out of the persistent index
#   clear [--yes]      empty both user-data cache tiers
#   enable <id>        persist a module's switch (next session)
#   disable <id>
#
# Log output goes to stderr so stdout carries only command results.
# =============================================================================

"""Operator CLI for nsaide (``python -m nsaide.cli``)."""
