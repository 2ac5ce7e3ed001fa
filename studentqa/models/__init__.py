# =============================================================================
# Models Package - Domain Types & Pydantic V2 Schemas
# =============================================================================
#   - domain.py:    dataclasses shared by services and storage backends
#   - requests.py:  API request bodies
#   - responses.py: API response bodies
#
# The ORM rows live separately in studentqa/db/models.py.
# =============================================================================
