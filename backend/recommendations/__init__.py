"""
Catalog-constrained recommendation pipeline.

Responsibilities:
- Compose the generation prompt from the catalog snapshot and user message.
- Run single-shot or streaming generation.
- Filter generated caterers down to catalog-faithful, well-formed entries.
- Return structured recommendations ready for API serialisation.
"""
