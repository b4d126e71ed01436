# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the persistence and migration code:
# - test_document_store.py: CRUD, merge, pagination, cascade, projections
# - test_reference_scanner.py: Classification, paths, parsers
# - test_asset_migrator.py: Migration driver, owners, idempotence
# - test_consistency_verifier.py: Verification pass and worker pool
# - fakes.py: In-memory Supabase and S3 backends
#
# Run tests with: pytest
# =============================================================================
