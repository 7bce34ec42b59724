"""Availability vertical: item availability decorated with request options.

- Pydantic schemas for the ILS snapshot, catalog record and claims
- Catalog record lookup
- Floor-plan map resolver
- Ordered decoration rules and the pipeline that runs them
- FastAPI router for /item/{id}
"""
