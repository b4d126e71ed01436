# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# Framework-agnostic persistence and migration logic:
# - registry.py: Static collection lists (cascade, scan, owner columns)
# - models/: Projectors, reference types and job report schemas
# - services/: Document store, scanner, migrator, verifier, reporting
#
# Code in this package should NOT import from Celery or the scripts.
# Collaborators are passed in, which keeps it testable with fakes.
# =============================================================================
