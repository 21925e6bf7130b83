"""In-memory data structures that back stored values."""