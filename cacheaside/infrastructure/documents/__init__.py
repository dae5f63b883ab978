"""Document store: Firestore REST client and the authoritative store adapter."""

from cacheaside.infrastructure.documents._rest_client import FirestoreRESTClient
from cacheaside.infrastructure.documents.client import create_firestore_client
from cacheaside.infrastructure.documents.document_protocol import DocumentStoreProtocol
from cacheaside.infrastructure.documents.document_store import DocumentStore

__all__ = [
    "DocumentStore",
    "DocumentStoreProtocol",
    "FirestoreRESTClient",
    "create_firestore_client",
]
