# =============================================================================
# app/ - Application Package
# =============================================================================
# Process-level concerns shared by scripts and workers:
# - config.py: Environment variable loading and settings
# - exceptions.py: Structured error taxonomy
# - dependencies.py: Builds stores, clients and jobs from Settings
#
# Business logic lives in core/; this layer only wires it up.
# =============================================================================
