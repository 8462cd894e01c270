"""Aggregation of extractor output into model and dashboard records.

- stats: null-safe mean/sum/rate helpers
- assembler: joins extractor output per model into dense ModelData
- dashboard: folds model summaries into cross-model totals
"""
