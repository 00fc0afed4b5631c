"""Index adapter layer — Connectors holding the derived search index.

Built-in adapters:
  - memory: in-process index with a query_string subset (development, tests)
  - opensearch: OpenSearch v2+ / Elasticsearch-compatible clusters

Implement ``IndexAdapter`` to mirror records into another search backend.
"""
