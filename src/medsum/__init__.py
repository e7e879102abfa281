"""Medical article summarizer core.

Page classification, security checks, language-model client and the
streaming orchestrator that ties the ingestion pipeline together.
"""

__all__ = [
    "classifier",
    "config",
    "errors",
    "llm",
    "orchestrator",
    "patterns",
    "security",
    "store",
]

__version__ = "1.0.0"
