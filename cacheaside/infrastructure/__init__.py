"""Infrastructure: Redis cache adapter and Firestore REST document store adapter."""
