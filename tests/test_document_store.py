"""Unit tests for InMemoryDocumentStore."""
import sys
import threading
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from models.document import Document, Page
from services.document_store import InMemoryDocumentStore


def make_document(document_id, name="report.pdf", text="Some text."):
    return Document(document_id=document_id, name=name, pages=[Page(page_number=1, text=text)])


class TestInMemoryDocumentStore:
    """Test suite for InMemoryDocumentStore."""

    def test_put_and_get(self):
        store = InMemoryDocumentStore()
        document = make_document("doc_1")

        stored = store.put(document)

        assert stored is document
        assert store.get("doc_1") is document
        assert len(store) == 1

    def test_get_missing_returns_none(self):
        assert InMemoryDocumentStore().get("doc_missing") is None

    def test_same_name_replaces_and_keeps_id(self):
        """Test re-uploading a file with the same name keeps the original id."""
        store = InMemoryDocumentStore()
        store.put(make_document("doc_1", text="Old text."))

        stored = store.put(make_document("doc_2", text="New text."))

        assert stored.document_id == "doc_1"
        assert len(store) == 1
        assert store.get("doc_1").text == "New text."
        assert store.get("doc_2") is None

    def test_list_in_insertion_order(self):
        store = InMemoryDocumentStore()
        store.put(make_document("doc_b", name="b.pdf"))
        store.put(make_document("doc_a", name="a.pdf"))

        assert [document.document_id for document in store.list()] == ["doc_b", "doc_a"]

    def test_delete(self):
        store = InMemoryDocumentStore()
        store.put(make_document("doc_1"))

        assert store.delete("doc_1") is True
        assert store.get("doc_1") is None
        assert store.delete("doc_1") is False

    def test_document_text_joins_pages(self):
        document = Document(
            document_id="doc_1",
            name="two.pdf",
            pages=[Page(page_number=1, text="First."), Page(page_number=2, text="Second.")]
        )

        assert document.text == "First.\nSecond."
        assert document.page_count == 2

    def test_concurrent_puts(self):
        """Test parallel writers all land in the store."""
        store = InMemoryDocumentStore()

        def writer(start):
            for i in range(start, start + 50):
                store.put(make_document(f"doc_{i}", name=f"file_{i}.pdf"))

        threads = [threading.Thread(target=writer, args=(n * 50,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store) == 200
