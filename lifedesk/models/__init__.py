# =============================================================================
# Models Package — Pydantic V2 Schemas
# =============================================================================
# Request/response schemas for the API, separate from the database models
# (lifedesk/db/models.py). Document embeddings and full document text live
# only in the database models and never appear in a response schema.
# =============================================================================
