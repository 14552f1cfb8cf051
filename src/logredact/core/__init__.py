"""
Core redaction components.

- Policy and built-in defaults
- Field name matching and content patterns
- Masking strategies and document traversal
- The redaction engine and its log/span interceptors
- Metrics collection
"""
