"""Test helper utilities for quote enhancer tests."""

from .fake_reasoning import FakeReasoningService
from .legal_documents import load_fixture_documents, write_legal_documents

__all__ = ["FakeReasoningService", "load_fixture_documents", "write_legal_documents"]
