"""
Infrastructure Layer

Adapters for external services (LLM provider SDKs).
"""
