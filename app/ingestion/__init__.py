"""
Stream ingestion pipeline for generated portfolio documents.

Modules
-------
config       – Pipeline-specific settings (defaults, span bounds, components …)
framing      – Incremental byte/text decoding into complete lines
events       – Typed stream events and the tolerant line parser
state        – Partial document state and the pure reducer
schemas      – Pydantic models for Document, CustomNode, Social, Stat
quality      – Quality gates, defaults and clamping (finalize)
errors       – Terminal failure and lifecycle exceptions
pipeline     – Per-stream orchestrator wiring everything together
"""
