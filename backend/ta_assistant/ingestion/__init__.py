"""
Ingestion package - turns PDF submissions into normalized text.

- document_processor: DocumentNormalizer, the strategy-selecting orchestrator
- errors: IngestionError hierarchy
"""
